"""Plugin generation: single tasks, ecosystem plans and matrix batches."""

from plugmatrix.generation.base import (
    GenerationOptions,
    GenerationTask,
    PluginExistsError,
    TaskValidationError,
    derive_name,
)
from plugmatrix.generation.flags import generate_options, parse_generate_flags
from plugmatrix.generation.generator import generate_plugin
from plugmatrix.generation.matrix import (
    BatchOutcome,
    MatrixError,
    MatrixRow,
    TaskOutcome,
    load_matrix,
    run_matrix,
)
from plugmatrix.generation.plans import (
    PLANS,
    EcosystemPlan,
    EcosystemSetupError,
    StepFailedError,
    build_plan,
)

__all__ = [
    "BatchOutcome",
    "EcosystemPlan",
    "EcosystemSetupError",
    "GenerationOptions",
    "GenerationTask",
    "MatrixError",
    "MatrixRow",
    "PLANS",
    "PluginExistsError",
    "StepFailedError",
    "TaskOutcome",
    "TaskValidationError",
    "build_plan",
    "derive_name",
    "generate_options",
    "generate_plugin",
    "load_matrix",
    "parse_generate_flags",
    "run_matrix",
]
