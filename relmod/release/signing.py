"""PGP signing material for published artifacts.

Rings are looked up in the CI root when running in CI, in the configured
custom directory otherwise, and in ~/.gnupg as a last resort.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from relmod.core.config import SigningConfig
from relmod.core.result import Err, Ok, Result
from relmod.release.environment import PGP_PASSPHRASE, CIEnvironment, ReleaseEnvironment
from relmod.release.errors import ReleaseError, undefined_variable


@dataclass(frozen=True, slots=True)
class SigningSetup:
    key_id: str
    passphrase: str
    public_ring: Path
    secret_ring: Path

    def as_env(self) -> dict[str, str]:
        return {
            "PGP_SIGNING_KEY": self.key_id,
            "PGP_PASSPHRASE": self.passphrase,
            "PGP_PUBLIC_RING": str(self.public_ring),
            "PGP_SECRET_RING": str(self.secret_ring),
        }


def ring_file(
    *,
    ci: CIEnvironment | None,
    custom_rings: Path | None,
    name: str,
    home: Path | None,
) -> Result[Path, ReleaseError]:
    if ci is not None:
        return Ok(ci.root_dir / ".gnupg" / name)
    if custom_rings is not None:
        return Ok(custom_rings / name)
    if home is None:
        return Err(
            ReleaseError(
                kind="environment",
                message="cannot locate the PGP rings: HOME is undefined",
                hint="Define $HOME or set [signing] custom_rings.",
            )
        )
    return Ok(home / ".gnupg" / name)


def resolve_signing(
    config: SigningConfig, env: ReleaseEnvironment
) -> Result[SigningSetup | None, ReleaseError]:
    """Signing material, or None when signing is disabled."""
    if not config.enabled:
        return Ok(None)

    passphrase = env.credentials.pgp_passphrase
    if passphrase is None:
        return Err(undefined_variable(PGP_PASSPHRASE))

    public = ring_file(
        ci=env.ci, custom_rings=config.custom_rings, name=config.public_ring, home=env.home
    )
    if isinstance(public, Err):
        return public
    secret = ring_file(
        ci=env.ci, custom_rings=config.custom_rings, name=config.private_ring, home=env.home
    )
    if isinstance(secret, Err):
        return secret

    return Ok(
        SigningSetup(
            key_id=config.key_id,
            passphrase=passphrase,
            public_ring=public.value,
            secret_ring=secret.value,
        )
    )
