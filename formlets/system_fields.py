"""
Cross-cutting hidden fields added to the root formlet after it is populated.

- ``method``: verb override, only when the verb is not natively supported
- ``token``: anti-forgery token, always, read from the session at build time
- ``honeypot1``/``honeypot2``: spam-trap decoys, only when enabled
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Dict, Optional

from formlets.fields import Hidden, ValueSource
from formlets.population import SessionStore
from formlets.settings import FormSettings

if TYPE_CHECKING:
    from formlets.formlet import Formlet

logger = logging.getLogger(__name__)


class SystemFieldInjector:
    def __init__(self, settings: FormSettings, session: Optional[SessionStore] = None):
        self.settings = settings
        self.session = session

    def system_fields(self) -> Dict[str, Hidden]:
        fields: Dict[str, Hidden] = {}

        if self.settings.requires_method_override:
            fields["method"] = self._hidden(self.settings.method_field, self.settings.method)

        fields["token"] = self._hidden(self.settings.token_field, self._current_token())

        if self.settings.honeypot:
            first, second = self.settings.honeypot_fields
            fields["honeypot1"] = self._hidden(first, "")
            fields["honeypot2"] = self._hidden(second, "")

        return fields

    def inject(self, formlet: "Formlet") -> Dict[str, Hidden]:
        fields = self.system_fields()
        for key, field in fields.items():
            formlet.add_system_field(key, field)
        logger.debug(f"Injected system fields: {', '.join(fields)}")
        return fields

    def _current_token(self) -> Optional[str]:
        if self.session is None:
            logger.warning("No session attached; anti-forgery token field will be empty")
            return None
        return self.session.current_token()

    @staticmethod
    def _hidden(name: str, value) -> Hidden:
        field = Hidden(name)
        field.instance_name = name
        field.mark_resolved(value, ValueSource.SYSTEM)
        return field
