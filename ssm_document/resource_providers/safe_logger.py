import json
import logging
from typing import Optional

from ssm_document.resource_providers.stabilization import CallbackContext

LOG = logging.getLogger(__name__)

# properties of the model which are safe to log, document content may contain secrets
LOGGED_PROPERTIES = ("Name", "DocumentType", "DocumentFormat", "TargetType", "VersionName")


class SafeLogger:
    """
    Logs what a handler invocation is working on. Logging is fire-and-forget: a failure to log never fails the
    invocation, and the document content is never logged.
    """

    def safe_log_document_information(
        self,
        model: dict,
        callback_context: Optional[CallbackContext],
        account_id: str,
        system_tags: Optional[dict[str, str]],
        logger: logging.Logger,
    ) -> None:
        try:
            information = {
                "document": {key: model.get(key) for key in LOGGED_PROPERTIES if model.get(key)},
                "callbackContext": callback_context.to_dict() if callback_context else None,
                "accountId": account_id,
                "systemTags": system_tags,
            }
            logger.info("Document information: %s", json.dumps(information, default=str))
        except Exception as e:
            LOG.debug("Unable to log document information: %s", e)
