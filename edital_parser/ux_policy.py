"""
UX Policy Engine
================
Pure, deterministic mapping from a Diagnostic to at most one user-facing
decision.

Selection of the primary reason:
    1. HIGH flags, in HIGH_PRIORITY order, else the first HIGH
    2. MEDIUM flags, in MEDIUM_PRIORITY order, else the first MEDIUM
    3. the first LOW flag
    4. with status "ok" and nothing selected, a generic "continue with risk"
       confirmation

Severity sets the mode: HIGH blocks, MEDIUM asks for confirmation, LOW
shows a dismissible banner.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from .models import (
    BlockDecision,
    ConfirmDecision,
    Diagnostic,
    InfoDecision,
    PipelineStatus,
    Severity,
    UxAction,
    UxAlert,
    UxButton,
)

logger = logging.getLogger(__name__)

BLOCK_PREAMBLE = "Não deu para extrair o Anexo II com segurança.\n\n"
CONFIRM_PREAMBLE = "Posso continuar, mas o resultado pode ficar incompleto.\n\n"

MAX_OTHER_ALERTS = 2

ACTION_LABELS = {
    UxAction.UPLOAD_OTHER: "Enviar outro PDF",
    UxAction.RETRY: "Tentar novamente",
    UxAction.CONTINUE: "Continuar mesmo assim",
}
INFO_CONTINUE_LABEL = "Entendi"

HIGH_PRIORITY = (
    "broken_structure",
    "status_scanned",
    "status_extraction_error",
    "scanned",
    "text_insufficient",
)

MEDIUM_PRIORITY = (
    "fragmented",
    "broken_headings",
    "possible_lost_annex",
    "low_density",
    "missing_keywords",
)

GENERIC_RISK_KEY = "ok_with_alerts"


@dataclass(frozen=True)
class FlagRecord:
    key: str
    severity: Severity
    title: str
    message: str
    primary_action: UxAction
    secondary_action: UxAction


def _continue_record(key: str, severity: Severity, title: str, message: str) -> FlagRecord:
    return FlagRecord(key, severity, title, message, UxAction.CONTINUE, UxAction.UPLOAD_OTHER)


def _upload_record(key: str, title: str, message: str) -> FlagRecord:
    return FlagRecord(key, Severity.HIGH, title, message, UxAction.UPLOAD_OTHER, UxAction.RETRY)


FLAG_RECORDS = {
    # Classification
    "fragmented": _continue_record(
        "fragmented", Severity.MEDIUM,
        "PDF com texto fragmentado",
        "Este PDF parece estar com o texto fragmentado. Posso continuar, mas "
        "o resultado pode sair incompleto ou fora de ordem.",
    ),
    "scanned": _upload_record(
        "scanned",
        "Não consigo ler este PDF",
        "Este arquivo parece ser um PDF escaneado (sem texto selecionável). "
        "Assim, não dá para extrair o Anexo II com segurança.",
    ),
    # Parser
    "possible_lost_annex": _continue_record(
        "possible_lost_annex", Severity.MEDIUM,
        "Pode faltar parte do Anexo II",
        "Encontrei sinais de que o Anexo II pode estar incompleto neste "
        "arquivo. Posso tentar, mas o mapa pode ficar faltando itens.",
    ),
    "broken_headings": _continue_record(
        "broken_headings", Severity.MEDIUM,
        "Estrutura do anexo está confusa",
        "A estrutura de títulos e seções do Anexo II está inconsistente. "
        "Posso tentar, mas pode haver classificação errada de "
        "disciplinas/tópicos.",
    ),
    # Pre-validation
    "text_insufficient": _upload_record(
        "text_insufficient",
        "Conteúdo insuficiente para extração",
        "O conteúdo extraído é insuficiente para montar o mapa do Anexo II. "
        "Tente um PDF com texto selecionável e completo.",
    ),
    "broken_structure": _upload_record(
        "broken_structure",
        "Não encontrei o Anexo II de forma confiável",
        "Este PDF não contém o Anexo II de um jeito que eu consiga "
        "identificar com segurança. Envie outra versão do edital.",
    ),
    "low_density": _continue_record(
        "low_density", Severity.MEDIUM,
        "Qualidade do texto está ruim",
        "O texto extraído está com muitos ruídos. Posso continuar, mas pode "
        "haver erros no resultado.",
    ),
    "missing_keywords": _continue_record(
        "missing_keywords", Severity.MEDIUM,
        "Estrutura do anexo parece incompleta",
        "A estrutura do Anexo II parece incompleta. Posso tentar, mas o "
        "resultado pode faltar partes.",
    ),
    "repetitive_noise": _continue_record(
        "repetitive_noise", Severity.LOW,
        "Encontrei pequenas inconsistências",
        "Encontrei pequenas inconsistências no texto, mas nada que impeça "
        "continuar.",
    ),
}

STATUS_RECORDS = {
    PipelineStatus.SCANNED: _upload_record(
        "status_scanned",
        "Não consigo ler este PDF",
        "Este arquivo está no formato escaneado (imagem). Preciso de um PDF "
        "com texto selecionável para extrair o Anexo II.",
    ),
    PipelineStatus.EXTRACTION_ERROR: _upload_record(
        "status_extraction_error",
        "Falha ao extrair o Anexo II",
        "Não consegui extrair o Anexo II com segurança a partir deste PDF. "
        "Tente outro arquivo (ou uma versão com texto selecionável).",
    ),
}


def active_records(diagnostic: Diagnostic) -> list[FlagRecord]:
    """Records of every raised flag; a terminal status record comes first."""
    raised = [
        ("fragmented", diagnostic.classification.fragmented),
        ("scanned", diagnostic.classification.scanned),
        ("possible_lost_annex", diagnostic.parser.possible_lost_annex),
        ("broken_headings", diagnostic.parser.broken_headings),
        ("text_insufficient", diagnostic.prevalidation.text_insufficient),
        ("broken_structure", diagnostic.prevalidation.broken_structure),
        ("low_density", diagnostic.prevalidation.low_density),
        ("missing_keywords", diagnostic.prevalidation.missing_keywords),
        ("repetitive_noise", diagnostic.prevalidation.repetitive_noise),
    ]
    records = [FLAG_RECORDS[key] for key, value in raised if value]

    status_record = STATUS_RECORDS.get(diagnostic.status)
    if status_record is not None:
        records.insert(0, status_record)

    return records


def _pick(records: list[FlagRecord], priority: tuple[str, ...]) -> Optional[FlagRecord]:
    if not records:
        return None
    for key in priority:
        for record in records:
            if record.key == key:
                return record
    return records[0]


def select_primary(records: list[FlagRecord]) -> Optional[FlagRecord]:
    by_severity = {
        severity: [r for r in records if r.severity == severity]
        for severity in Severity
    }
    return (
        _pick(by_severity[Severity.HIGH], HIGH_PRIORITY)
        or _pick(by_severity[Severity.MEDIUM], MEDIUM_PRIORITY)
        or _pick(by_severity[Severity.LOW], ())
    )


def _button(action: UxAction) -> UxButton:
    return UxButton(label=ACTION_LABELS[action], action=action)


def _generic_risk_decision() -> ConfirmDecision:
    return ConfirmDecision(
        title="Posso continuar, mas com risco",
        message=(
            CONFIRM_PREAMBLE
            + "Posso continuar a extração, porém existem alertas que podem "
            "afetar a qualidade do resultado."
        ),
        primary=_button(UxAction.CONTINUE),
        secondary=UxButton(label="Trocar PDF", action=UxAction.UPLOAD_OTHER),
        reason_key=GENERIC_RISK_KEY,
    )


def build_decision(diagnostic: Diagnostic):
    """
    Decide what the user sees for ``diagnostic``.

    Returns:
        BlockDecision, ConfirmDecision, InfoDecision, or None when nothing
        needs the user's attention.
    """
    records = active_records(diagnostic)
    if not records:
        return None

    primary = select_primary(records)
    if primary is None:
        if diagnostic.status == PipelineStatus.OK:
            logger.info("No specific reason selected, asking to continue with risk")
            return _generic_risk_decision()
        return None

    others = [
        UxAlert(title=r.title, message=r.message)
        for r in records
        if r is not primary and r.severity == primary.severity
    ][:MAX_OTHER_ALERTS]

    if primary.severity == Severity.HIGH:
        decision = BlockDecision(
            title=primary.title,
            message=BLOCK_PREAMBLE + primary.message,
            primary=_button(primary.primary_action),
            secondary=_button(primary.secondary_action),
            other_alerts=others,
            reason_key=primary.key,
        )
    elif primary.severity == Severity.MEDIUM:
        decision = ConfirmDecision(
            title=primary.title,
            message=CONFIRM_PREAMBLE + primary.message,
            primary=_button(primary.primary_action),
            secondary=_button(primary.secondary_action),
            other_alerts=others,
            reason_key=primary.key,
        )
    else:
        label = (
            INFO_CONTINUE_LABEL
            if primary.primary_action == UxAction.CONTINUE
            else ACTION_LABELS[primary.primary_action]
        )
        decision = InfoDecision(
            title=primary.title,
            message=primary.message,
            primary=UxButton(label=label, action=primary.primary_action),
            reason_key=primary.key,
        )

    logger.info(
        f"UX decision: {decision.mode.value} ({decision.severity.value}) "
        f"reason={decision.reason_key}"
    )
    return decision
