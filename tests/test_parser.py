"""
Test Suite for the Edital Parser
================================
Unit tests for the text stages: normalizer, classifier, pre-validator,
preprocessor, topic extraction, canonical parser and finalizer.
"""

from __future__ import annotations

import pytest

from edital_parser.canonical_parser import (
    CanonicalParser,
    ParserPhase,
    detect_annex_headings,
    extract_weights,
    find_heading_by_signature,
    locate_headings,
    locate_syllabus_section,
    match_canonical_subjects,
    resolve_official_subjects,
)
from edital_parser.classifier import classify
from edital_parser.finalizer import canonical_subject_name, confidence_score, finalize
from edital_parser.models import (
    Discipline,
    ParseDebugInfo,
    ParserResult,
    PdfCategory,
    SubjectWeight,
    WeightMethod,
    WeightTable,
)
from edital_parser.normalizer import NormalizedText, find_all, find_first, normalize
from edital_parser.preprocessor import preprocess, preprocess_with_stats
from edital_parser.prevalidator import prevalidate
from edital_parser.topics import extract_topics, segment_free_text
from edital_parser.vocabulary import ANNEX_END_PATTERN, FALLBACK_SUBJECTS


# ═══════════════════════════════════════════════════════════════════════════════
# NORMALIZER TESTS
# ═══════════════════════════════════════════════════════════════════════════════


class TestNormalizer:
    """Test accent/case/whitespace folding."""

    def test_strips_accents_and_case(self):
        assert normalize("Língua PORTUGUÊS") == "lingua portugues"

    def test_collapses_and_trims_whitespace(self):
        assert normalize("  Conteúdo \n\t Programático  ") == "conteudo programatico"

    def test_invisible_characters_are_spaces(self):
        assert normalize("Anexo\u00a0II") == "anexo ii"
        assert normalize("Anexo\u200bII") == "anexo ii"

    def test_offsets_map_back_to_source(self):
        source = "Olá   Mundo"
        folded = NormalizedText.build(source)

        assert folded.text == "ola mundo"
        idx = folded.text.find("mundo")
        assert source[folded.to_source(idx):] == "Mundo"

    def test_offset_past_end_maps_to_source_length(self):
        folded = NormalizedText.build("abc  ")
        assert folded.to_source(len(folded)) == 5

    def test_source_span_cuts_original_text(self):
        source = "EDITAL\n\nANEXO   II – Conteúdo"
        folded = NormalizedText.build(source)
        start = folded.text.find("anexo ii")

        s, e = folded.source_span(start, start + len("anexo ii"))
        assert source[s:e] == "ANEXO   II"

    def test_find_all_non_overlapping(self):
        assert find_all("aaaa", "aa") == [0, 2]

    def test_find_first_normalizes_needle(self):
        haystack = normalize("O conteúdo programático")
        assert find_first(haystack, "CONTEÚDO") == 2
        assert find_first(haystack, "anexo") == -1


# ═══════════════════════════════════════════════════════════════════════════════
# CLASSIFIER TESTS
# ═══════════════════════════════════════════════════════════════════════════════


def _text(length: int, anchor: bool = False) -> str:
    prefix = "anexo " if anchor else ""
    return prefix + "a" * max(length - len(prefix), 0)


class TestClassifier:
    """Test classification thresholds."""

    @pytest.mark.parametrize("length,anchor,expected", [
        (0, False, PdfCategory.SCANNED),
        (999, False, PdfCategory.SCANNED),
        (999, True, PdfCategory.FRAGMENTED),
        (1000, False, PdfCategory.FRAGMENTED),
        (1000, True, PdfCategory.FRAGMENTED),
        (1999, False, PdfCategory.FRAGMENTED),
        (2000, False, PdfCategory.VALID_TEXT),
        (2000, True, PdfCategory.VALID_TEXT),
        (10000, False, PdfCategory.VALID_TEXT),
        (10000, True, PdfCategory.VALID_TEXT),
    ])
    def test_threshold_grid(self, length, anchor, expected):
        result = classify(_text(length, anchor))
        assert result.length == length
        assert result.category == expected

    def test_documented_examples(self):
        assert classify(_text(1500)).category == PdfCategory.FRAGMENTED
        assert classify(_text(500)).category == PdfCategory.SCANNED
        assert classify(_text(2500)).category == PdfCategory.VALID_TEXT

    def test_short_text_with_anchor_is_valid(self):
        assert classify(_text(300, anchor=True)).category == PdfCategory.VALID_TEXT

    def test_anchor_is_accent_insensitive(self):
        result = classify("CONTEUDO PROGRAMATICO")
        assert result.contains_anchor_keyword

    def test_line_count_and_density(self):
        result = classify("abc\ndef")
        assert result.line_count == 2
        assert result.density == pytest.approx(3.5)

    def test_rejects_non_str(self):
        with pytest.raises(TypeError):
            classify(None)


# ═══════════════════════════════════════════════════════════════════════════════
# PRE-VALIDATOR TESTS
# ═══════════════════════════════════════════════════════════════════════════════


class TestPrevalidator:
    """Test that each structural flag depends only on its own condition."""

    LONG_LINE = (
        "O candidato deverá comparecer ao local de prova com antecedência "
        "mínima de uma hora, munido de documento oficial com foto."
    )

    def _long_text(self, lines: int = 8, extra: str = "") -> str:
        return "\n".join([self.LONG_LINE] * lines) + extra

    def test_clean_text_raises_nothing(self):
        text = self._long_text(extra="\nConteúdo programático da disciplina.")
        result = prevalidate(text)
        assert result.flags.active() == []

    def test_text_insufficient_alone(self):
        result = prevalidate(self.LONG_LINE + " Conteúdo programático.")
        assert result.flags.text_insufficient
        assert not result.flags.missing_keywords
        assert not result.flags.broken_structure

    def test_missing_keywords_alone(self):
        result = prevalidate(self._long_text())
        assert result.flags.active() == ["missing_keywords"]

    def test_low_density(self):
        result = prevalidate("a\n" * 100)
        assert result.flags.low_density
        assert result.stats.density < 8

    def test_broken_structure_counts_blank_lines_in_total(self):
        lines = ["Disciplina um"] * 4 + [""] * 6
        result = prevalidate("\n".join(lines))
        # 4 short lines out of 10
        assert result.stats.short_line_percent == pytest.approx(40.0)
        assert result.flags.broken_structure

    def test_repetitive_noise_threshold(self):
        base = self._long_text(extra="\nconteúdo")
        three = base + "\nPágina de rodapé" * 3
        four = base + "\nPágina de rodapé" * 4

        assert not prevalidate(three).flags.repetitive_noise
        assert prevalidate(four).flags.repetitive_noise

    def test_long_repeated_lines_are_not_noise(self):
        result = prevalidate(self._long_text(lines=10))
        assert not result.flags.repetitive_noise


# ═══════════════════════════════════════════════════════════════════════════════
# PREPROCESSOR TESTS
# ═══════════════════════════════════════════════════════════════════════════════


SAMPLES = [
    "conteú-\n do programático",
    "Item um;\nItem dois\n\n\n\nItem três",
    "Noções de direito,\nconstitucional\nOUTRO TÍTULO",
    "linha\r\ncom\rquebras   e\t\tespaços",
    "A:\n\n\nB;\nC,\nD E F G\n   \n   \n",
    "",
]


class TestPreprocessor:
    """Test conservative text repair."""

    def test_hyphen_broken_word_is_rejoined(self):
        assert preprocess("conteú-\n do programático") == "conteúdo programático"

    def test_semicolon_joins_next_line(self):
        assert preprocess("Item um;\nItem dois") == "Item um; Item dois"

    def test_colon_does_not_join_blank_line(self):
        assert preprocess("Título:\n\nTexto") == "Título:\n\nTexto"

    def test_comma_joins_short_lowercase_line(self):
        result = preprocess("Noções de direito,\nconstitucional\nOutro")
        assert result == "Noções de direito, constitucional\nOutro"

    def test_comma_does_not_join_heading(self):
        result = preprocess("Tópico final,\nGEOGRAFIA")
        assert result == "Tópico final,\nGEOGRAFIA"

    def test_comma_does_not_join_numbered_item(self):
        result = preprocess("Conjuntos,\n2. Funções")
        assert result == "Conjuntos,\n2. Funções"

    def test_blank_lines_collapse_to_one(self):
        assert preprocess("a\n\n\n\nb") == "a\n\nb"

    def test_line_endings_and_spaces(self):
        assert preprocess("a\r\nb\rc   d\t e") == "a\nb\nc d e"

    @pytest.mark.parametrize("sample", SAMPLES)
    def test_idempotent(self, sample):
        once = preprocess(sample)
        assert preprocess(once) == once

    @pytest.mark.parametrize("sample", SAMPLES[1:])
    def test_preserves_tokens(self, sample):
        assert "".join(preprocess(sample).split()) == "".join(sample.split())

    def test_stats_count_annex_mentions(self):
        text = "ANEXO II\nConteúdo\nAnexo III\nanexo - ii"
        _, stats = preprocess_with_stats(text)
        assert stats.annex_mentions_before == 2
        assert stats.annex_mentions_after == 2

    def test_stats_measure_joined_lines(self):
        text = "Tópicos:\num\ndois;\ntrês"
        processed, stats = preprocess_with_stats(text)
        assert processed == "Tópicos: um\ndois; três"
        assert stats.lines_before == 4
        assert stats.lines_after == 2
        assert stats.original_length == len(text)

    def test_rejects_non_str(self):
        with pytest.raises(TypeError):
            preprocess(b"bytes")


# ═══════════════════════════════════════════════════════════════════════════════
# TOPIC EXTRACTION TESTS
# ═══════════════════════════════════════════════════════════════════════════════


class TestTopicExtraction:
    """Test per-line topic extraction rules."""

    def test_inline_numbered_items(self):
        topics = extract_topics("1. Foo bar 2. Baz qux 3) Quux")
        assert topics == ["Foo bar", "Baz qux", "Quux"]

    def test_one_item_per_line(self):
        topics = extract_topics("1. Ortografia oficial.\n2. Crase;\n")
        assert topics == ["Ortografia oficial", "Crase"]

    def test_rejects_boilerplate(self):
        topics = extract_topics("1. Edital de abertura 2. Ortografia")
        assert topics == ["Ortografia"]

    def test_keeps_topics_about_numbers(self):
        topics = extract_topics("1. Números inteiros e racionais")
        assert topics == ["Números inteiros e racionais"]

    def test_deduplicates(self):
        topics = extract_topics("1. Ortografia\n2. Ortografia\n3. Crase")
        assert topics == ["Ortografia", "Crase"]

    def test_rejects_out_of_bounds(self):
        assert extract_topics("1. ab") == []
        assert extract_topics("1. " + "x" * 241) == []

    def test_respects_limit(self):
        topics = extract_topics("1. Um tópico 2. Dois tópicos 3. Três tópicos", limit=2)
        assert topics == ["Um tópico", "Dois tópicos"]

    def test_skips_heading_lines(self):
        assert extract_topics("CONHECIMENTOS GERAIS\nDivisão regional do Brasil") == [
            "Divisão regional do Brasil",
        ]

    def test_keeps_punctuated_all_caps_topics(self):
        topics = extract_topics(
            "NOÇÕES DE INFORMÁTICA\n"
            "Segurança da informação\n"
            "REDES, PROTOCOLOS E SEGURANÇA\n"
            "HTML, CSS E JAVASCRIPT\n",
            subject="Noções de Informática",
        )
        assert topics == [
            "Segurança da informação",
            "REDES, PROTOCOLOS E SEGURANÇA",
            "HTML, CSS E JAVASCRIPT",
        ]

    def test_short_all_caps_line_is_a_topic(self):
        assert extract_topics("SQL\nÉTICA E MORAL") == ["SQL"]

    def test_skips_subject_heading(self):
        topics = extract_topics(
            "Língua Portuguesa\nInterpretação de textos",
            subject="Língua Portuguesa",
        )
        assert topics == ["Interpretação de textos"]

    def test_free_text_semicolons(self):
        topics = extract_topics("Conjuntos; funções; equações")
        assert topics == ["Conjuntos", "funções", "equações"]

    def test_segment_implicit_enumeration(self):
        parts = segment_free_text("a) Conjuntos b) Funções c) Equações")
        assert parts == ["a) Conjuntos", "b) Funções", "c) Equações"]

    def test_segment_long_block_into_sentences(self):
        sentences = [
            "Compreensão e interpretação de textos de gêneros variados.",
            "Reconhecimento de tipos e gêneros textuais diversos.",
            "Domínio da ortografia oficial e da acentuação gráfica.",
            "Emprego dos sinais de pontuação.",
        ]
        block = " ".join(sentences)
        assert len(block) > 180

        assert segment_free_text(block) == sentences

    def test_segment_long_sentence_into_clauses(self):
        clauses = [
            "Lei de Responsabilidade Fiscal e suas alterações posteriores",
            "Lei de Licitações e Contratos Administrativos vigente",
            "Processo Administrativo Federal e seus prazos legais",
            "Regime Jurídico dos Servidores Públicos Civis da União",
        ]
        # "Ética" is shorter than a clause may be
        block = ", ".join(clauses + ["Ética"])
        assert len(block) > 180

        assert segment_free_text(block) == clauses

    def test_short_block_stays_whole(self):
        block = (
            "Compreensão e interpretação de textos de gêneros variados. "
            "Reconhecimento de tipos e gêneros textuais diversos."
        )
        assert len(block) <= 180

        assert segment_free_text(block) == [block]

    def test_unique_and_bounded(self, sample_edital):
        topics = extract_topics(sample_edital)
        assert len(topics) == len(set(topics))
        assert all(3 <= len(t) <= 240 for t in topics)


# ═══════════════════════════════════════════════════════════════════════════════
# CANONICAL PARSER TESTS
# ═══════════════════════════════════════════════════════════════════════════════


class TestSubjectList:
    """Test Phase A (official subject list)."""

    def test_nested_names_do_not_count(self):
        assert match_canonical_subjects("matematica financeira") == [
            "Matemática Financeira",
        ]

    def test_document_order(self):
        window = "matematica financeira e lingua inglesa e matematica"
        assert match_canonical_subjects(window) == [
            "Matemática Financeira",
            "Língua Inglesa",
            "Matemática",
        ]

    def test_fallback_without_marker(self):
        subjects, from_table = resolve_official_subjects("qualquer texto", -1)
        assert subjects == list(FALLBACK_SUBJECTS)
        assert not from_table

    def test_fallback_with_too_few_subjects(self):
        subjects, from_table = resolve_official_subjects("quadro 1 geografia", 0)
        assert subjects == list(FALLBACK_SUBJECTS)
        assert not from_table


class TestWeights:
    """Test Phase B (weighting table)."""

    SUBJECTS = ["Língua Portuguesa", "Geografia", "Noções de Informática"]

    def test_points(self):
        norm = normalize(
            "Quadro 1 Língua Portuguesa: 20 pontos; Geografia: 15 pontos; "
            "Noções de Informática: 10 pontos"
        )
        table = extract_weights(norm, 0, self.SUBJECTS)

        assert table.found
        assert table.method == WeightMethod.POINTS
        assert [w.point_count for w in table.weights] == [20, 15, 10]

    def test_too_few_weights(self):
        norm = normalize("Quadro 1 Língua Portuguesa: 20 questões")
        table = extract_weights(norm, 0, self.SUBJECTS)

        assert not table.found
        assert table.method == WeightMethod.NOT_FOUND
        assert table.warning

    def test_no_marker(self):
        assert not extract_weights("texto", -1, self.SUBJECTS).found

    def test_percentages(self):
        table = WeightTable(
            found=True,
            method=WeightMethod.QUESTIONS,
            weights=[
                SubjectWeight(subject="A", question_count=30),
                SubjectWeight(subject="B", question_count=10),
            ],
        )
        assert table.percentages() == {"A": 75.0, "B": 25.0}


class TestHeadings:
    """Test Phase C' and Phase D heading strategies."""

    def test_signature_match(self):
        section = "nocoes basicas de informatica 1. windows"
        assert find_heading_by_signature(section, "nocoes de informatica") == 0

    def test_signature_requires_numbered_item(self):
        section = "nocoes basicas de informatica sem itens"
        assert find_heading_by_signature(section, "nocoes de informatica") is None

    def test_overlapping_headings_keep_longest(self):
        section = "matematica financeira: 1. juros"
        matches = locate_headings(section, ["Matemática", "Matemática Financeira"])
        assert [m.subject for m in matches] == ["Matemática Financeira"]

    def test_annex_headings(self, annex_headings_edital):
        assert detect_annex_headings(annex_headings_edital) == [
            "Língua Portuguesa",
            "Matemática",
            "Conhecimentos Bancários",
        ]

    def test_annex_headings_drop_context_words(self):
        text = "ESCRITURÁRIO AGENTE COMERCIAL VENDAS E NEGOCIAÇÃO: 1. Técnicas"
        assert detect_annex_headings(text) == ["Vendas e Negociação"]


class TestSyllabusSection:
    """Test annex selection and its fallbacks."""

    SUBJECTS = ["Língua Portuguesa"]

    def _locate(self, text):
        return locate_syllabus_section(text, NormalizedText.build(text), self.SUBJECTS)

    def test_unvalidated_annex_falls_back_to_syllabus_phrase(self):
        text = (
            "Anexo II - Modelo de recurso.\n"
            "Conteúdo programático\n"
            "LÍNGUA PORTUGUESA: Ortografia e crase.\n"
            "Observação: o conteúdo programático pode ser consultado no site.\n"
        )
        norm = normalize(text)
        location = self._locate(text)

        # The phrase followed by an upper-case heading wins over the last one
        assert location.start == norm.find("conteudo programatico")
        assert location.end == len(norm)
        assert not location.validated

        debug = CanonicalParser().parse(text).debug
        assert debug.section_found
        assert not debug.section_validated

    def test_no_phrase_falls_back_to_last_annex(self):
        text = (
            "Ver o Anexo II deste documento.\n"
            "Modelo de recurso.\n"
            "ANEXO II\n"
            "LÍNGUA PORTUGUESA\n"
            "1. Ortografia.\n"
        )
        norm = normalize(text)
        location = self._locate(text)

        assert location.start == norm.rfind("anexo ii")
        assert location.end == len(norm)
        assert not location.validated

    def test_without_annex_runs_from_phrase_to_end(self):
        text = (
            "Disposições gerais.\n"
            "Conteúdo programático\n"
            "LÍNGUA PORTUGUESA: 1. Ortografia.\n"
            "ANEXO III\n"
            "Modelo de requerimento.\n"
        )
        norm = normalize(text)
        location = self._locate(text)

        assert location.start == norm.find("conteudo programatico")
        assert location.end == len(norm)
        assert not location.validated

    def test_nothing_found(self):
        assert self._locate("Disposições gerais do processo.") is None

    @pytest.mark.parametrize("marker", ["ANEXO III", "Anexo 3", "ANEXO IV", "Anexo - 4"])
    def test_section_ends_at_next_annex(self, marker):
        text = (
            "ANEXO II\n"
            "CONTEÚDOS PROGRAMÁTICOS\n"
            "LÍNGUA PORTUGUESA\n"
            "1. Ortografia.\n"
            f"{marker}\n"
            "Modelo de recurso.\n"
        )
        norm = normalize(text)
        location = self._locate(text)

        assert location.validated
        assert location.start == 0
        assert location.end == norm.find(normalize(marker))

    @pytest.mark.parametrize("text,expected", [
        ("anexo iii", True),
        ("anexo 3", True),
        ("anexo iv", True),
        ("anexo 4", True),
        ("anexo ii", False),
        ("anexo 30", False),
    ])
    def test_annex_end_pattern(self, text, expected):
        assert bool(ANNEX_END_PATTERN.search(text)) is expected


class TestCanonicalParser:
    """Test the full canonical parse."""

    def test_full_edital(self, sample_edital):
        result = CanonicalParser().parse(preprocess(sample_edital))
        debug = result.debug

        assert [d.name for d in result.disciplines] == list(FALLBACK_SUBJECTS)
        assert result.disciplines[0].topics == [
            "Compreensão e interpretação de textos",
            "Ortografia oficial",
            "Concordância verbal e nominal",
        ]
        assert result.disciplines[4].topics == [
            "Código de Ética Profissional do Servidor Público",
            "Deveres e proibições do servidor",
        ]

        assert debug.section_found
        assert debug.section_validated
        assert debug.detected_subjects == 5
        assert debug.total_topics == 11
        assert debug.completeness == 100.0
        assert debug.confidence_score == 73

    def test_sections_do_not_overlap(self, sample_edital):
        text = preprocess(sample_edital)
        sections = CanonicalParser().parse(text).debug.sections

        assert len(sections) == 5
        for current, following in zip(sections, sections[1:]):
            assert current.end == following.start
        assert text[sections[1].start:].startswith("GEOGRAFIA")

    def test_weight_table(self, sample_edital):
        table = CanonicalParser().parse(preprocess(sample_edital)).debug.weight_table

        assert table.found
        assert table.method == WeightMethod.QUESTIONS
        assert len(table.weights) == 5
        assert [w.question_count for w in table.weights] == [10, 10, 10, 5, 5]
        assert sum(table.percentages().values()) == pytest.approx(100.0)

    def test_single_subject_annex(self, single_subject_edital):
        result = CanonicalParser().parse(preprocess(single_subject_edital))

        assert len(result.disciplines) == len(FALLBACK_SUBJECTS)
        portuguese = result.disciplines[0]
        assert portuguese.name == "Língua Portuguesa"
        assert portuguese.topics == ["Some Topic", "Other Topic"]
        assert result.debug.detected_subjects == 1
        assert result.debug.confidence_score > 0

    def test_annex_headings_replace_fallback(self, annex_headings_edital):
        result = CanonicalParser().parse(annex_headings_edital)

        assert [d.name for d in result.disciplines] == [
            "Língua Portuguesa",
            "Matemática",
            "Conhecimentos Bancários",
        ]
        assert result.disciplines[1].topics == ["Juros simples", "Porcentagem"]

    def test_no_section_still_lists_official_subjects(self):
        parser = CanonicalParser()
        result = parser.parse("Texto sem qualquer estrutura reconhecível.")

        assert [d.name for d in result.disciplines] == list(FALLBACK_SUBJECTS)
        assert all(d.topics == [] for d in result.disciplines)
        assert not result.debug.section_found
        assert result.debug.confidence_score == 0
        assert all(not s.found for s in result.debug.per_subject)
        assert parser.phase == ParserPhase.FINALIZE

    def test_empty_text(self):
        result = CanonicalParser().parse("")
        assert len(result.disciplines) == len(FALLBACK_SUBJECTS)

    def test_rejects_non_str(self):
        with pytest.raises(TypeError):
            CanonicalParser().parse(42)


# ═══════════════════════════════════════════════════════════════════════════════
# FINALIZER TESTS
# ═══════════════════════════════════════════════════════════════════════════════


class TestFinalizer:
    """Test name normalization, completeness and statistics."""

    def test_equivalences(self):
        assert canonical_subject_name("Português") == "Língua Portuguesa"
        assert canonical_subject_name("INFORMÁTICA") == "Conhecimentos de Informática"
        assert canonical_subject_name(" Geografia ") == "Geografia"

    def test_cleans_and_forces_official_subjects(self):
        raw = ParserResult(
            disciplines=[
                Discipline(
                    name="Português",
                    original_name="Português",
                    topics=["Ortografia;", "Ortografia", "  Crase  ", "Acentuação gráfica."],
                ),
            ],
            debug=ParseDebugInfo(
                section_found=True,
                official_subjects=["Língua Portuguesa", "Geografia"],
            ),
        )
        result = finalize(raw)

        assert [d.name for d in result.disciplines] == ["Língua Portuguesa", "Geografia"]
        assert result.disciplines[0].topics == ["Ortografia", "Crase", "Acentuação gráfica"]
        assert result.disciplines[1].topics == []

        debug = result.debug
        assert debug.total_subjects == 2
        assert debug.total_topics == 3
        assert debug.density == 1.5
        assert debug.completeness == 50.0
        assert debug.confidence_score == 52

    def test_merges_equivalent_names(self):
        raw = ParserResult(
            disciplines=[
                Discipline(name="Informática", original_name="Informática", topics=["Windows"]),
                Discipline(
                    name="Conhecimentos de Informática",
                    original_name="Conhecimentos de Informática",
                    topics=["Linux", "Windows"],
                ),
            ],
            debug=ParseDebugInfo(official_subjects=["Conhecimentos de Informática"]),
        )
        result = finalize(raw)

        assert len(result.disciplines) == 1
        assert result.disciplines[0].topics == ["Windows", "Linux"]

    def test_confidence_is_capped(self):
        assert confidence_score(True, 100.0, 50.0) == 100
        assert confidence_score(False, 0.0, 0.0) == 0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
