from __future__ import annotations

import logging
from typing import Mapping

from turnseven.engine.actions import Action
from turnseven.engine.errors import InvalidArgument
from turnseven.engine.serialize import action_from_dict
from turnseven.paths import get_paths
from turnseven.services.content import ContentService, schema_errors

logger = logging.getLogger(__name__)


def parse_action(raw: object, *, content: ContentService | None = None) -> Action:
    """Decode a wire payload (already JSON-parsed) into an engine action.

    Rejections raise `InvalidArgument` so callers only deal with the engine's
    error taxonomy.
    """
    if content is None:
        paths = get_paths()
        content = ContentService(paths.data_dir, paths.schema_dir)
    lines = schema_errors(raw, content.load_action_schema())
    if lines:
        logger.debug("rejected action payload: %s", lines[0])
        raise InvalidArgument("\n".join(["Malformed action payload:", *lines]))
    assert isinstance(raw, Mapping)
    return action_from_dict(raw)
