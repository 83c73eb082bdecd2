import random
import string

# length of the random part of generated resource identifiers
IDENTIFIER_SUFFIX_LENGTH = 12

IDENTIFIER_ALPHABET = string.ascii_letters + string.digits


def generate_resource_identifier(prefix: str, request_token: str, max_length: int) -> str:
    """
    Generates a resource identifier of the form ``<prefix>-<random id>``. The random part is seeded with the request
    token, so that retried invocations of the same request produce the same identifier.

    :param prefix: the human-readable prefix, truncated if the identifier would exceed max_length
    :param request_token: idempotency token of the request, used as seed
    :param max_length: maximum length of the returned identifier
    :return: the identifier
    """
    max_prefix_length = max_length - (IDENTIFIER_SUFFIX_LENGTH + 1)
    prefix = (prefix or "")[: max(max_prefix_length, 0)]

    rnd = random.Random(request_token)
    suffix = "".join(rnd.choice(IDENTIFIER_ALPHABET) for _ in range(IDENTIFIER_SUFFIX_LENGTH))

    if prefix:
        return f"{prefix}-{suffix}"
    return suffix
