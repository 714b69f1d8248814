import tempfile, yaml, json, os
from typing import Union, Dict, Any, Type, Optional
from pathlib import Path
from pydantic import ValidationError
from phasewise.recovery import FileOperationError, FatalError, CorruptionError
from phasewise.logs import get_logger
from phasewise.models import BaseYAMLModel

log = get_logger("io")

DATA_YAML = 0
DATA_JSON = 1

def _cleanup(temp_path: Optional[str]):
    if temp_path is not None and os.path.exists(temp_path):
        try:
            os.unlink(temp_path)
            log.debug(f"Cleaned up temporary file: {temp_path}")
        except OSError as cleanup_error:
            log.warning(f"Could not clean up temp file {temp_path}: {cleanup_error}")

def _create_dirs(file_path : Path):
    try:
        file_path.parent.mkdir(parents=True, exist_ok=True)
    except (OSError, PermissionError) as e:
        error_msg = f"Cannot create directory {file_path.parent}: {e}"
        log.error(error_msg)
        raise FileOperationError(error_msg) from e

def atomic_write(data_type : int, file_path : Union[Path, str], data : Dict[str, Any], create_dirs : bool = False):
    """
    Serialize and save data to a YAML or JSON file using atomic updates.
    """
    file_path = Path(file_path)
    temp_path = None

    if data_type not in (DATA_YAML, DATA_JSON):
        raise FatalError("Unsupported Data Format")

    if create_dirs:
        _create_dirs(file_path)

    try:
        # Temporary file in the target directory so os.replace stays atomic
        with tempfile.NamedTemporaryFile(mode='w', encoding='utf-8', dir=file_path.parent, prefix=f".{file_path.name}.", suffix='.tmp', delete=False) as temp_file:
            temp_path = temp_file.name
            if data_type == DATA_YAML:
                yaml.safe_dump(data, temp_file, default_flow_style=False, sort_keys=False, indent=2, allow_unicode=True)
            else:
                json.dump(data, temp_file, indent=2, ensure_ascii=False)
            temp_file.flush()
            os.fsync(temp_file.fileno())

        os.replace(temp_path, file_path)
        log.debug(f"Successfully saved file: {file_path}")
        return True

    except (yaml.YAMLError, TypeError, ValueError) as e:
        _cleanup(temp_path)
        # FATAL ERROR: Data cannot be serialized
        error_msg = (f"Data serialization failed for {file_path}. "
                    f"In-memory data may be corrupt or contain non-serializable types: {e}")
        log.critical(error_msg)
        raise FatalError(error_msg) from e

    except (IOError, OSError, PermissionError) as e:
        _cleanup(temp_path)
        # RECOVERABLE ERROR: I/O issues
        error_msg = f"I/O error saving file {file_path}: {e}"
        log.error(error_msg)
        raise FileOperationError(error_msg) from e

def load_model(model_type : Type[BaseYAMLModel], file_path : Union[Path, str]) -> Union[None, BaseYAMLModel]:
    """
    Load a YAML file into a model.

    Args:
        model_type: Model class to validate the document with
        file_path: Path to the YAML file

    Returns:
        The model instance, or None if the file doesn't exist
    """
    file_path = Path(file_path)
    if not file_path.exists():
        return None

    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            return model_type.from_yaml(f.read())

    except yaml.YAMLError as e:
        # YAML syntax errors are typically fatal (corrupted file)
        raise CorruptionError(f"YAML syntax error in {file_path}: {e}") from e
    except ValidationError as e:
        raise CorruptionError(f"Invalid data in {file_path}: {e}") from e
    except (IOError, OSError, PermissionError) as e:
        # I/O errors are recoverable
        raise FileOperationError(f"Failed to read file {file_path}: {e}") from e

def load_json_file(file_path : Union[Path, str]) -> Union[None, Dict]:
    """
    Load and parse a JSON file.

    Args:
        file_path: Path to the JSON file

    Returns:
        Parsed data as dict, or None if file doesn't exist
    """
    file_path = Path(file_path)
    if not file_path.exists():
        return None

    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            data = json.load(f) or {}

    except json.JSONDecodeError as e:
        raise CorruptionError(f"JSON syntax error in {file_path}: {e}") from e
    except (IOError, OSError, PermissionError) as e:
        raise FileOperationError(f"Failed to read file {file_path}: {e}") from e

    # Basic sanity check for data corruption
    if not isinstance(data, dict):
        raise CorruptionError(f"File {file_path} contains invalid data structure")
    return data
