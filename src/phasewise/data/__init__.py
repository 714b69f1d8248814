"""
File storage helpers. The workspace itself lives in ``phasewise.data.core``.
"""

from .io import atomic_write, load_model, load_json_file, DATA_YAML, DATA_JSON
from .validate import validate_file_schema, check_schema_version, model_schema

__all__ = [
    'atomic_write',
    'load_model',
    'load_json_file',
    'DATA_YAML',
    'DATA_JSON',
    'validate_file_schema',
    'check_schema_version',
    'model_schema',
]
