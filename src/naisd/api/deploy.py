"""Deploy API."""

from __future__ import annotations

from typing import List

import structlog
from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse
from pydantic import ValidationError

from naisd.core.exceptions import MalformedRequestError
from naisd.deploy.models import DeploymentRequest
from naisd.deploy.pipeline import Deployer


router = APIRouter()
logger = structlog.get_logger()


def get_deployer(request: Request) -> Deployer:
    deployer = getattr(request.app.state, "deployer", None)
    if deployer is None:
        raise RuntimeError("Deployer not initialized")
    return deployer


def format_result(actions: List[str]) -> str:
    return "result: \n" + "".join(f"- {action}\n" for action in actions)


@router.post("/deploy", response_class=PlainTextResponse)
async def deploy_endpoint(request: Request, deployer: Deployer = Depends(get_deployer)) -> PlainTextResponse:
    # Decoded by hand so an unreadable body is a 400, not FastAPI's 422
    body = await request.body()
    try:
        payload = DeploymentRequest.model_validate_json(body)
    except ValidationError as e:
        logger.info("Could not decode deployment request", errors=e.error_count())
        raise MalformedRequestError(f"Unable to decode deployment request: {e}", code="malformed_request") from e

    actions = await deployer.deploy(payload)
    return PlainTextResponse(format_result(actions), status_code=200)
