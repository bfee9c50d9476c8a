# utils/state.py

import logging


logger = logging.getLogger(__name__)


class AppState:
    _active_user_id = None

    @classmethod
    def set_active_user_id(cls, user_id):
        logger.debug(
            "[state] set_active_user_id(%s) (from %s)",
            user_id,
            getattr(cls, "_active_user_id", None),
        )
        cls._active_user_id = user_id

    @classmethod
    def get_active_user_id(cls):
        return cls._active_user_id

    @classmethod
    def clear(cls):
        cls._active_user_id = None
