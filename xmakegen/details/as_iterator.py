from typing import Any, Iterator, List, Optional

from xmakegen.errors import ConfigurationTypeError


# Make a JSON scalar string or array of strings iterable...
def str_iter(value: Any, property_name: str) -> Iterator[str]:
    if isinstance(value, list):
        for v in value:
            if not isinstance(v, str):
                raise ConfigurationTypeError(
                    f"'{property_name}' must be a string or an array of strings"
                )
            yield v
    elif isinstance(value, str):
        yield value
    else:
        raise ConfigurationTypeError(
            f"'{property_name}' must be a string or an array of strings"
        )


# Missing (None) properties become empty lists.
def as_str_list(value: Any, property_name: str) -> List[str]:
    if value is None:
        return []
    return list(str_iter(value, property_name))


def as_optional_str(value: Any, property_name: str) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigurationTypeError(f"'{property_name}' must be a string")
    return value


def as_object(value: Any, property_name: str) -> dict:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigurationTypeError(f"'{property_name}' must be an object")
    return value
