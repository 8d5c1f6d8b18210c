import json
import os
from typing import Any


def save_json(json_dict: dict[str, Any] | list[Any], file_path: str) -> None:
    os.makedirs(os.path.dirname(file_path) or ".", exist_ok=True)
    with open(file_path, "w") as file:
        json.dump(json_dict, file, indent=1, default=str)


def save_text(text: str, file_path: str) -> None:
    os.makedirs(os.path.dirname(file_path) or ".", exist_ok=True)
    with open(file_path, "w") as file:
        file.write(text)
