import json
import yaml
from pathlib import Path
from typing import Optional, Type, Union
from jsonschema import validate, ValidationError, SchemaError
from packaging import version
from pydantic import BaseModel

from phasewise.logs import get_logger
from phasewise.version import APP_SCHEMA_VERSION
from phasewise.recovery import FatalError, MigrationNeededError
from .io import load_json_file

log = get_logger("data.validate")

def model_schema(model_type: Type[BaseModel]) -> dict:
    """JSON schema of a model, as written to disk files."""
    schema = model_type.model_json_schema()
    schema["$schema"] = "https://json-schema.org/draft/2020-12/schema"
    return schema

def validate_file_schema(file_path: Union[Path, str], model_type: Type[BaseModel]) -> bool:
    """
    Validates a YAML file against the JSON schema of ``model_type``.

    Args:
        file_path: The full path to the YAML file to validate.
        model_type: Model whose schema the file must satisfy.

    Returns:
        True if the file is valid, False otherwise.
    """
    file_path = Path(file_path)
    if not file_path.exists():
        log.error(f"File not found: {file_path}")
        return False

    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
        # Unquoted YAML timestamps load as datetimes; the schema expects strings
        instance = json.loads(json.dumps(data, default=str))

        validate(instance=instance, schema=model_schema(model_type))
        log.info(f"File '{file_path}' is VALID for {model_type.__name__}.")
        return True

    except yaml.YAMLError as e:
        log.error(f"Validation failed: The file '{file_path}' is not valid YAML. Error: {e}")
        return False
    except ValidationError as e:
        log.error(f"File '{file_path}' FAILED validation against {model_type.__name__}.")
        log.error(f"Validation Error: {e.message}")
        return False
    except SchemaError as e:
        log.error(f"Validation failed: The schema itself is invalid. Error: {e.message}")
        return False

def read_schema_version(meta_file: Union[Path, str]) -> Optional[str]:
    meta_data = load_json_file(meta_file)
    if meta_data is None:
        return None
    return meta_data.get("schema_version")

def check_schema_version(meta_file: Union[Path, str]) -> str:
    """
    Compare the schema version recorded in ``meta_file`` with this release.

    Raises:
        MigrationNeededError: The data is older or carries no version.
        FatalError: The data was written by a newer release.
    """
    stored = read_schema_version(meta_file)
    log.info(f"DATA: {stored}; APP: {APP_SCHEMA_VERSION};")
    if stored is None:
        raise MigrationNeededError(f"No schema version recorded in {meta_file}")
    if version.parse(stored) < version.parse(APP_SCHEMA_VERSION):
        raise MigrationNeededError(f"Data schema {stored} is older than {APP_SCHEMA_VERSION}, migrate data")
    if version.parse(stored) > version.parse(APP_SCHEMA_VERSION):
        raise FatalError(f"Data schema {stored} is newer than this release ({APP_SCHEMA_VERSION})")
    return stored
