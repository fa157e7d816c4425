from typing import Any, Dict

from fastapi import HTTPException


def validate_reading_input(record: Dict[str, Any]) -> None:
    """Guardrail around the core logic: reject empty payloads early."""
    if not record:
        raise HTTPException(
            status_code=422,
            detail="Reading payload cannot be empty. Please provide at least one device field."
        )
