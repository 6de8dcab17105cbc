"""
forms.py — HTML form parsing into the pydantic schemas.
"""
from typing import TypeVar

from fastapi import Request
from pydantic import BaseModel

FormModel = TypeVar("FormModel", bound=BaseModel)


async def parse_form(request: Request, model: type[FormModel]) -> FormModel:
    """Validate the submitted form; raises pydantic.ValidationError."""
    form = await request.form()
    data = {key: value for key, value in form.items() if key != "_method"}
    return model.model_validate(data)
