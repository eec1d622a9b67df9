"""Error Classifier — turns captured error-stream text into an ErrorClassification.

The model extracts structured data from the raw text (schema below);
the status code alone decides the kind. A malformed answer never raises: it
degrades to Unclassified with the raw text kept as the detail.

Required output schema:
{
  "is_http_error": true | false,
  "status_code": integer or null,
  "message": "string"
}
"""

import json
import logging
from datetime import datetime, timezone

from hubgen.state import ErrorClassification, ErrorKind
from hubgen.utils.parsing import strip_fences

logger = logging.getLogger(__name__)

STATUS_KINDS: dict[int, ErrorKind] = {
    401: "Auth",
    403: "Auth",
    429: "RateLimit",
    404: "NotFound",
    500: "ServerFault",
    502: "ServerFault",
    503: "ServerFault",
    504: "ServerFault",
}

SYSTEM_PROMPT = """\
You extract structured information from error output produced by a script that calls a web API.

You MUST respond with valid JSON matching this exact schema:
{
  "is_http_error": true or false,
  "status_code": integer HTTP status code, or null if none is present,
  "message": "string — the full error message, normalized to a single paragraph"
}

Rules:
- is_http_error is true only if the text describes a failed HTTP request/response.
- status_code must be the numeric status of that response, if one is stated.
- Respond ONLY with the JSON object. No markdown fences, no commentary.
"""


def kind_for_status(status_code: int | None) -> ErrorKind:
    """Map an HTTP status code to its error kind; unknown codes are Unclassified."""
    if status_code is None:
        return "Unclassified"
    return STATUS_KINDS.get(status_code, "Unclassified")


def _coerce_status(status) -> int | None:
    """Accept an int, a digit string ("404") or an integral float (404.0)."""
    if status is None:
        return None
    if isinstance(status, bool):
        raise ValueError(f"Invalid status_code {status!r}.")
    if isinstance(status, int):
        return status
    if isinstance(status, float) and status.is_integer():
        return int(status)
    if isinstance(status, str) and status.strip().isdigit():
        return int(status.strip())
    raise ValueError(f"Invalid status_code {status!r}.")


def _validate_response(data) -> None:
    """Validate the classifier response, raising ValueError on schema violations.

    Normalizes `status_code` in place.
    """
    if not isinstance(data, dict):
        raise ValueError("Classifier response is not a JSON object.")
    if not isinstance(data.get("is_http_error"), bool):
        raise ValueError("Classifier response missing boolean 'is_http_error'.")
    data["status_code"] = _coerce_status(data.get("status_code"))
    if not isinstance(data.get("message", ""), str):
        raise ValueError("Classifier response 'message' must be a string.")


def parse_classification(response: str, raw_text: str) -> ErrorClassification:
    """Parse the model's answer; any malformed answer degrades to Unclassified."""
    try:
        data = json.loads(strip_fences(response))
        _validate_response(data)
    except (json.JSONDecodeError, ValueError) as exc:
        logger.warning("Malformed classifier response (%s); treating as Unclassified.", exc)
        return ErrorClassification(kind="Unclassified", detail=raw_text)

    detail = data.get("message") or raw_text
    if not data["is_http_error"]:
        return ErrorClassification(kind="Unclassified", detail=detail)
    status = data.get("status_code")
    return ErrorClassification(kind=kind_for_status(status), detail=detail, status_code=status)


class ErrorClassifier:
    def __init__(self, llm, diagnostics):
        self.llm = llm
        self.diagnostics = diagnostics

    def classify(self, raw_text: str, integration: str, task: str) -> ErrorClassification:
        """Classify `raw_text` and record the result in the diagnostic log."""
        response = self.llm.invoke(SYSTEM_PROMPT, f"## Error output\n```\n{raw_text}\n```")
        classification = parse_classification(response, raw_text)
        logger.info(
            "Classified error for %s/%s as %s (status=%s)",
            integration, task, classification.kind, classification.status_code,
        )
        self.diagnostics.append({
            "integration": integration,
            "task": task,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "kind": classification.kind,
            "status_code": classification.status_code,
            "detail": classification.detail,
            "raw": raw_text,
        })
        return classification
