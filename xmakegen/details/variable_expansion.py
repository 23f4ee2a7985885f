from typing import Mapping

from xmakegen.errors import MacroError

MAX_SUBSTITUTIONS = 256


# Replace `${name}` tokens with values from the map. Inserted values are
# scanned again, so macros may refer to other macros; an unterminated token
# ends the scan and is left as is.
def substitute(text: str, values: Mapping[str, str]) -> str:
    result = text
    start = 0
    count = 0
    while True:
        open_idx = result.find("${", start)
        if open_idx < 0:
            break
        close_idx = result.find("}", open_idx + 2)
        if close_idx < 0:
            break
        name = result[open_idx + 2 : close_idx].strip()
        if not name:
            raise MacroError(f"empty macro in '{text}'")
        if name not in values:
            raise MacroError(f"unknown macro '${{{name}}}' in '{text}'")
        count += 1
        if count > MAX_SUBSTITUTIONS:
            raise MacroError(f"recursive macro '${{{name}}}' in '{text}'")
        result = result[:open_idx] + str(values[name]) + result[close_idx + 1 :]
        start = open_idx
    return result
