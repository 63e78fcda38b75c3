"""
The persisted, ordered list of secret references (a JSON array).
"""

import json
import logging
import os
from typing import List

from .. import config
from ..core.errors import ReferenceListError
from ..core.validated import Validated

logger = logging.getLogger(__name__)


class ReferenceList:

    def __init__(self, path: str = config.REFS_FILE) -> None:
        self.path = path

    def get(self) -> Validated[List[str]]:
        if not os.path.exists(self.path):
            return Validated.valid([])
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            return Validated.invalid(ReferenceListError(f"cannot read {self.path}: {e}"))
        if not isinstance(data, list) or not all(isinstance(ref, str) for ref in data):
            return Validated.invalid(ReferenceListError(f"{self.path} is not a list of references"))
        return Validated.valid(data)

    def set(self, refs: List[str]) -> None:
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(list(refs), f)
        logger.debug("Saved %d references to %s", len(refs), self.path)
