import json
import os
from functools import lru_cache

from jsonschema import FormatChecker, validate, ValidationError

RES_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "res")


@lru_cache(maxsize=None)
def load_schema(schema_path: str):
    with open(schema_path, "r", encoding="utf-8") as schema_file:
        return json.load(schema_file)


def validate_schema(data, schema: dict, kind: str, exception, **context):
    """
    Validate `data` against the JSON `schema`. Raise `exception` with the validation
    error in its context if `data` doesn't conform.
    """
    try:
        validate(instance=data, schema=schema, format_checker=FormatChecker())
    except ValidationError as err:
        msg = "{validation_kind} has an invalid format: {validation_err}."
        raise exception(
            message=msg,
            validation_kind=kind,
            validation_err=err.message,
            **context,
        ) from err
