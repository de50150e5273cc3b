import os
from typing import Callable, Dict, Iterable, Tuple, TypeVar

from dotenv import dotenv_values

from .env import Env, PrimaryType

T = TypeVar("T", bound=Env)


def load_env(default: type[T], env_file: str | None = ".env") -> T:
    """
    Build ``default`` from the process environment and a dotenv file.

    Values from ``env_file`` win over the process environment. Unknown
    variables and empty values are ignored, leaving the model defaults.
    """
    envars = default.types_map()

    values = _convert(os.environ.items(), envars)

    if env_file and os.path.exists(env_file):
        values.update(
            _convert(dotenv_values(dotenv_path=env_file).items(), envars)
        )

    return default(**values)


def _convert(
    items: Iterable[Tuple[str, str | None]],
    envars: Dict[str, Callable[[str], PrimaryType]],
) -> Dict[str, PrimaryType]:
    converted: Dict[str, PrimaryType] = {}
    for envar_name, envar_value in items:
        envar_type = envars.get(envar_name)
        if envar_type and envar_value:
            converted[envar_name] = envar_type(envar_value)

    return converted
