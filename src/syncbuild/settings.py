from __future__ import annotations
import os

RECIPE_ENV = "SYNCBUILD_RECIPE"
DESTINATION_ENV = "SYNCBUILD_DESTINATION"
REFERENCE_ENV = "SYNCBUILD_REFERENCE"

GIT_EXECUTABLE = os.environ.get("SYNCBUILD_GIT", "git")
OUTPUT_TAIL = int(os.environ.get("SYNCBUILD_OUTPUT_TAIL", "4000"))
DEFAULT_RECIPE_FILE = "syncbuild_recipe.py"
