import logging
import uuid
from typing import Any, Mapping, Optional
from intake_flow.api import config, state
from intake_flow.errors import IntakeFlowError
from intake_flow.flows import Flow, build_all_flows
from intake_flow.wizard import IntakeClient, WizardController

logger = logging.getLogger("api")


def load_flows():
    """Build every language's flow graphs. Content defects stop the service here."""
    try:
        state.flows_by_language = build_all_flows()
        state.flows_error = None
        logger.info(f"[api] Built flows for {sorted(state.flows_by_language)}")
    except IntakeFlowError as e:
        state.flows_by_language = None
        state.flows_error = str(e)
        logger.error(f"[api] Flow build failed: {e}")
        raise


def get_flows(language: str) -> Mapping[str, Flow]:
    if state.flows_by_language is None:
        load_flows()
    return state.flows_by_language[language]


def get_intake_client() -> Any:
    if state.intake_client is None:
        if not config.INTAKE_API_URL:
            logger.warning("[api] INTAKE_API_URL not set; submissions will fail until configured")
        state.intake_client = IntakeClient(config.INTAKE_API_URL, timeout=config.INTAKE_API_TIMEOUT)
    return state.intake_client


def new_controller(language: Optional[str]) -> WizardController:
    if state.flows_by_language is None:
        load_flows()
    return WizardController(
        client=get_intake_client(),
        flows_by_language=state.flows_by_language,
        language=language or config.DEFAULT_LANGUAGE,
    )


def new_session_id() -> str:
    return uuid.uuid4().hex
