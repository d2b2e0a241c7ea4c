"""Centralized path conventions for the harness.

Install scripts live in the nsm-nse source checkout, which by convention sits
under ``$GOPATH/src/github.com/cisco-app-networking/nsm-nse``.
"""

import os
from pathlib import Path

NSM_NSE_REPO = Path("src") / "github.com" / "cisco-app-networking" / "nsm-nse"


def gopath_root() -> Path:
    """nsm-nse checkout under GOPATH, read at call time (/src/... when unset)."""
    return Path(os.getenv("GOPATH", "") or "/") / NSM_NSE_REPO


class ProjectPaths:
    """Source checkout directory structure paths."""

    def __init__(self, base_path: Path | None = None):
        """Initialize source paths.

        Args:
            base_path: Optional root of the nsm-nse checkout.
                      If None, derived from the GOPATH environment variable.
        """
        if base_path is None:
            self.root = gopath_root()
        else:
            self.root = Path(base_path)

        # Script directories
        self.scripts = self.root / "scripts"
        self.scripts_vl3 = self.scripts / "vl3"

        # Install scripts
        self.nsm_install = self.scripts_vl3 / "nsm_install_interdomain.sh"
        self.nse_install = self.scripts_vl3 / "vl3_interdomain.sh"

    def nsm_install_command(self) -> str:
        """Shell command installing the mesh infrastructure."""
        return str(self.nsm_install)

    def nse_install_command(self) -> str:
        """Shell command installing the pass-through endpoints."""
        return f"{self.nse_install} --pass-through"

    def validate(self) -> list[str]:
        """Validate that critical paths exist.

        Returns:
            List of missing critical paths (empty if all exist).
        """
        critical_paths = [
            ("Source checkout", self.root),
            ("Mesh install script", self.nsm_install),
            ("Endpoint install script", self.nse_install),
        ]

        missing = []
        for name, path in critical_paths:
            if not path.exists():
                missing.append(f"{name}: {path}")

        return missing
