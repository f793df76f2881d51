"""Decode-revert command implementation."""

import json

from txlens.cli.common import configure_logging
from txlens.parsers.revert import Unknown, decode_revert_data, describe_revert
from txlens.utils.colors import error, info


def decode_revert_command(args) -> int:
    """
    Decode a revert payload given on the command line.

    Returns:
        0 when the payload was recognised, 1 when it decodes to Unknown
    """
    configure_logging(args)
    decoded = decode_revert_data(args.data)

    if args.json:
        print(json.dumps(decoded.to_dict(), indent=2))
    elif isinstance(decoded, Unknown):
        print(error(describe_revert(decoded)))
    else:
        print(info(describe_revert(decoded)))

    return 1 if isinstance(decoded, Unknown) else 0
