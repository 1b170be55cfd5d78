"""pnpm ecosystem definition."""

from plugmatrix.ecosystems.base import Ecosystem

PNPM = Ecosystem(
    name="pnpm",
    tag="B",
    cli_command="pnpm",
    install_info="https://pnpm.io/installation",
    lockfiles=("pnpm-lock.yaml",),
    script_runner="pnpm run",
)
