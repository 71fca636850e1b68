from .dsl import sh, script, git, bash, recipe, RecipeBuilder
from .runner import run_recipe, run_build, load_recipe
from .model import Recipe, Checkout, BuildAction, Step, SyncResult, StepResult, RunResult
from .errors import RecipeError, SyncError, BuildError, PrerequisiteError

__all__ = [
    "sh", "script", "git", "bash", "recipe", "RecipeBuilder",
    "run_recipe", "run_build", "load_recipe",
    "Recipe", "Checkout", "BuildAction", "Step", "SyncResult", "StepResult", "RunResult",
    "RecipeError", "SyncError", "BuildError", "PrerequisiteError",
]
