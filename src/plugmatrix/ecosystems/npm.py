"""npm ecosystem definition."""

from plugmatrix.ecosystems.base import Ecosystem

SHRINKWRAP_FILENAME = "npm-shrinkwrap.json"

NPM = Ecosystem(
    name="npm",
    tag="A",
    cli_command="npm",
    install_info="https://docs.npmjs.com/downloading-and-installing-node-js-and-npm",
    lockfiles=("package-lock.json", SHRINKWRAP_FILENAME),
    script_runner="npm run",
)
