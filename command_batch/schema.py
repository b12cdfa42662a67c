"""
Command Batch Schema - the one definition of the batch text format.

    starkli invoke <target> reward <identity> <amount> / <target> reward ...

The generator writes with encode_call()/join() and the verifier reads with
pattern(); both come from the same BatchSchema instance.
"""

import re
from dataclasses import dataclass
from typing import Iterable, Pattern


DEFAULT_TARGET_ADDRESS = "0x00e5f10eddc01699dc899a30dbc3c9858148fa4aa0a47c0ffd85f887ffc4653e"


@dataclass(frozen=True)
class BatchSchema:
    """Ordered fields and delimiter of a command batch."""
    target_address: str = DEFAULT_TARGET_ADDRESS
    program: str = "starkli invoke"
    verb: str = "reward"
    delimiter: str = "/"

    def encode_call(self, identity: str, amount: str) -> str:
        return f"{self.target_address} {self.verb} {identity} {amount}"

    def join(self, calls: Iterable[str]) -> str:
        """Prefix the program and join calls; no trailing delimiter."""
        return f"{self.program} " + f" {self.delimiter} ".join(calls)

    def pattern(self) -> Pattern[str]:
        """
        Matches ``<verb> <hex identity> <integer amount>`` anywhere in a batch.

        The verb and identity must be whole whitespace-separated tokens and
        the amount must end at whitespace, the end of the text or the
        delimiter, so a call with a fractional or malformed amount does not
        match at all.
        """
        verb = re.escape(self.verb)
        delimiter = re.escape(self.delimiter)
        return re.compile(
            rf"(?<!\S){verb}\s+(0x[0-9a-f]+)\s+(\d+)(?=\s|$|{delimiter})",
            re.IGNORECASE,
        )
