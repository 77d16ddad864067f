"""
Vocabulary
==========
Fixed word lists and markers of the exam-notice domain: canonical subject
names, the fallback subject list, name equivalences, section markers and
the boilerplate vocabulary that must never become a topic.

All patterns here run on *normalized* text (see ``normalizer``).
"""

from __future__ import annotations

import re

# Quadro 1 – Estrutura da Prova – APM (IBGE)
FALLBACK_SUBJECTS = (
    "Língua Portuguesa",
    "Geografia",
    "Raciocínio Lógico Matemático",
    "Noções de Informática",
    "Ética no Serviço Público",
)

# Subjects recognised inside a weighting table
CANONICAL_SUBJECTS = FALLBACK_SUBJECTS + (
    "Língua Inglesa",
    "Matemática",
    "Matemática Financeira",
    "Probabilidade e Estatística",
    "Conhecimentos Bancários",
    "Atualidades do Mercado Financeiro",
    "Conhecimentos de Informática",
    "Tecnologia da Informação",
    "Vendas e Negociação",
)

# Conservative, explicit equivalences only (keys are normalized)
SUBJECT_EQUIVALENCES = {
    "lingua portuguesa": "Língua Portuguesa",
    "portugues": "Língua Portuguesa",
    "lingua inglesa": "Língua Inglesa",
    "ingles": "Língua Inglesa",
    "matematica": "Matemática",
    "matematica basica": "Matemática",
    "matematica financeira": "Matemática Financeira",
    "matematica financeira basica": "Matemática Financeira",
    "probabilidade e estatistica": "Probabilidade e Estatística",
    "conhecimentos bancarios": "Conhecimentos Bancários",
    "atualidades do mercado financeiro": "Atualidades do Mercado Financeiro",
    "conhecimentos de informatica": "Conhecimentos de Informática",
    "informatica": "Conhecimentos de Informática",
    "tecnologia da informacao": "Tecnologia da Informação",
    "tecnologia da informacao e comunicacao": "Tecnologia da Informação",
    "vendas e negociacao": "Vendas e Negociação",
}

# Heading -> canonical name, first match wins (annex heading detection)
HEADING_NORMALIZATION = (
    (re.compile(r"lingua portuguesa"), "Língua Portuguesa"),
    (re.compile(r"lingua inglesa"), "Língua Inglesa"),
    (re.compile(r"matematica financeira"), "Matemática Financeira"),
    (re.compile(r"matematica\b"), "Matemática"),
    (re.compile(r"atualidades do mercado financeiro"),
     "Atualidades do Mercado Financeiro"),
    (re.compile(r"probabilidade e estatistica"), "Probabilidade e Estatística"),
    (re.compile(r"conhecimentos bancarios"), "Conhecimentos Bancários"),
    (re.compile(r"conhecimentos de informatica"),
     "Conhecimentos de Informática"),
    (re.compile(r"tecnologia da informacao"), "Tecnologia da Informação"),
    (re.compile(r"vendas e negociacao"), "Vendas e Negociação"),
)

# Job-title and grouping words that prefix subject headings in annexes
HEADING_CONTEXT_WORDS = frozenset({
    "escriturario",
    "nome",
    "relacionamento",
    "agente",
    "conhecimentos",
    "basicos",
    "especificos",
    "comercial",
    "area",
})

# ─── Section Markers ──────────────────────────────────────────────────────────

WEIGHT_TABLE_MARKERS = ("quadro 1", "quadro i", "estrutura da prova")

ANNEX_II_PATTERN = re.compile(r"\banexo\s*-?\s*ii\b")

ANNEX_END_PATTERN = re.compile(r"\banexo\s*-?\s*(?:iii|3|iv|4)\b")

SYLLABUS_PATTERN = re.compile(r"conteudos? programaticos?")

# ─── Boilerplate (never a topic) ──────────────────────────────────────────────

HEADER_PATTERNS = (
    re.compile(r"\bedital\b"),
    re.compile(r"\bn(?:umero|o|º)\.?\s*\d+\s*/\s*\d{2,4}\b"),
    re.compile(r"\binstituto brasileiro\b"),
    re.compile(r"geografia e estatistica"),
    re.compile(r"\bibge\b"),
    re.compile(r"processo seletivo"),
    re.compile(r"\banexo\b"),
    re.compile(r"conteudos? programaticos?"),
    re.compile(r"\bquadro\b"),
    re.compile(r"estrutura da prova"),
)
