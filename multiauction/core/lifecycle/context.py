from dataclasses import dataclass

from multiauction.core.errors import ErrorCode, error
from multiauction.core.interfaces import SignerCheck


@dataclass(frozen=True)
class OperationContext:
    """
    Per-operation environment.

    now is read once by the runtime; every temporal check in the
    operation uses this value.
    """
    now: int
    signers: SignerCheck

    def require_signer(self, identity: bytes) -> None:
        if not self.signers.is_signer(identity):
            raise error(ErrorCode.MISSING_REQUIRED_SIGNATURE)
