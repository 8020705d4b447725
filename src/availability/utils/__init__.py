import os
import re

from pathlib import Path

root_dir = Path(__file__).resolve().parents[3]

data_dir_path = Path(os.getenv("AVAILABILITY_DATA_DIR", root_dir / "data"))


def get_version() -> str:
    try:
        with open(root_dir / "pyproject.toml") as file:
            pyproject_toml = file.read()
    except FileNotFoundError:
        return "0.0.0"

    match = re.search(r'version = "(.+)"', pyproject_toml)
    if match:
        version = match.group(1)
    else:
        raise ValueError("Could not find version in pyproject.toml")
    return version


def truncate(text: str | None, length: int = 500, omission: str = "…") -> str:
    """
    Shorten `text` to at most `length` characters, cutting on the last
    whitespace boundary and appending `omission` when anything was removed.
    """

    if not text:
        return ""

    if len(text) <= length:
        return text

    cut = text[: max(length - len(omission), 0)]
    boundaries = [match.start() for match in re.finditer(r"\s", cut)]
    if boundaries and boundaries[-1] > 0:
        cut = cut[: boundaries[-1]]

    return cut + omission
