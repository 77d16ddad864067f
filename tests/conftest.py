"""
Shared fixtures: synthetic editais built from real-world structure.
"""

from __future__ import annotations

import pytest

FILLER_LINE = (
    "As inscrições serão realizadas exclusivamente pela internet, no "
    "endereço eletrônico da organizadora, conforme o cronograma."
)

HEADER = """EDITAL Nº 1/2024 – PROCESSO SELETIVO SIMPLIFICADO
INSTITUTO BRASILEIRO DE GEOGRAFIA E ESTATÍSTICA – IBGE

Sumário: ANEXO II – Conteúdos Programáticos, página 12

Quadro 1 – Estrutura da Prova
Língua Portuguesa: 10 questões
Geografia: 10 questões
Raciocínio Lógico Matemático: 10 questões
Noções de Informática: 5 questões
Ética no Serviço Público: 5 questões
"""

ANNEX = """ANEXO II
CONTEÚDOS PROGRAMÁTICOS
LÍNGUA PORTUGUESA:
1. Compreensão e interpretação de textos.
2. Ortografia oficial.
3. Concordância verbal e nominal.
GEOGRAFIA:
1. Divisão regional do Brasil.
2. Urbanização brasileira.
RACIOCÍNIO LÓGICO MATEMÁTICO:
1. Proposições e conectivos.
2. Problemas com frações.
NOÇÕES DE INFORMÁTICA:
1. Sistema operacional Windows.
2. Editores de texto e planilhas.
ÉTICA NO SERVIÇO PÚBLICO:
1. Código de Ética Profissional do Servidor Público.
2. Deveres e proibições do servidor.
ANEXO III
Modelo de requerimento
"""


def filler(lines: int) -> str:
    return "\n".join([FILLER_LINE] * lines)


@pytest.fixture
def sample_edital() -> str:
    """Complete IBGE-style notice: weighting table + five-subject annex."""
    return HEADER + "\n" + filler(14) + "\n\n" + ANNEX


@pytest.fixture
def single_subject_edital() -> str:
    """Long notice whose annex lists one subject with two inline topics."""
    return (
        filler(17)
        + "\n\nANEXO II\nCONTEÚDOS PROGRAMÁTICOS\nLÍNGUA PORTUGUESA\n"
        + "1. Some Topic 2. Other Topic\n"
    )


@pytest.fixture
def scanned_text() -> str:
    """600 chars of text with no annex vocabulary at all."""
    return filler(6)[:600]


@pytest.fixture
def annex_headings_edital() -> str:
    """No weighting table; subjects only declared by annex headings."""
    return (
        "ANEXO II\n"
        "CONTEÚDOS PROGRAMÁTICOS\n"
        "LÍNGUA PORTUGUESA: 1. Ortografia. 2. Crase.\n"
        "MATEMÁTICA: 1. Juros simples. 2. Porcentagem.\n"
        "CONHECIMENTOS BANCÁRIOS: 1. Sistema Financeiro Nacional. "
        "2. Mercado de câmbio.\n"
    )
