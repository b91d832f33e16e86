"""Protocol for candidate sources.

Per KERNEL_PHILOSOPHY: Protocol-based extensibility over configuration.
Per IMPLEMENTATION_PHILOSOPHY: Composition over inheritance.
"""

from pathlib import Path
from typing import Protocol


class CandidateSourceProtocol(Protocol):
    """Anything that can produce a local file holding the latest remote content.

    Implementations:
    - GitCandidateSource: file inside a reused shallow git checkout
    - HttpCandidateSource: scratch file holding a fresh download
    """

    def fetch(self) -> Path:
        """Acquire the latest remote content.

        Returns:
            Path to a readable local file (the candidate)

        Raises:
            PullError: Classified acquisition failure
        """
        ...

    def release(self, candidate: Path | None) -> None:
        """Finalize per-invocation resources once the candidate is consumed.

        Called on every exit path, including failures (candidate is None
        when fetch() did not return).
        """
        ...
