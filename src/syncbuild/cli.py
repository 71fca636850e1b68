# cli.py
from __future__ import annotations

import sys
from dataclasses import replace
from pathlib import Path

import click

from syncbuild import settings
from syncbuild.errors import RecipeError
from syncbuild.git_facts.git import local_status
from syncbuild.model import Recipe
from syncbuild.recipes import BUILTIN_RECIPES
from syncbuild.runner import load_recipe, run_recipe
from syncbuild.ui.console import Console, set_console, get_console


def find_recipe_files() -> list[Path]:
    """
    Find all recipe files in the current directory.

    Returns:
        List of Path objects for recipe files
    """
    recipe_files = []
    current_dir = Path(".")

    # Look for syncbuild_recipe.py
    default_recipe = current_dir / settings.DEFAULT_RECIPE_FILE
    if default_recipe.exists():
        recipe_files.append(default_recipe)

    # Look for other *_recipe.py files
    for path in current_dir.glob("*_recipe.py"):
        if path != default_recipe:
            recipe_files.append(path)

    return sorted(recipe_files)


def discover_recipe(recipe_arg: str | None) -> str | Path:
    """
    Discover recipe from argument, built-in name, or local file.

    Args:
        recipe_arg: Optional --recipe argument from CLI

    Returns:
        Built-in recipe name or path to a recipe file

    Raises:
        SystemExit: If no recipe can be found or several candidates exist
    """
    console = get_console()

    if recipe_arg:
        if recipe_arg in BUILTIN_RECIPES:
            return recipe_arg
        recipe_path = Path(recipe_arg)
        if not recipe_path.exists() and recipe_path.suffix != ".py":
            recipe_path = Path(str(recipe_path) + ".py")
        if not recipe_path.exists():
            console.print_error(
                "Recipe not found",
                f"Could not find recipe: {recipe_arg}",
                details=[f"Built-in recipes: {', '.join(sorted(BUILTIN_RECIPES))}"],
                suggestion="Create a recipe file or name a built-in one:\n  syncbuild run --recipe lvm2",
            )
            sys.exit(1)
        return recipe_path

    recipe_files = find_recipe_files()

    if len(recipe_files) == 0:
        console.print_error(
            "No recipe file found",
            "Could not find any recipe files.",
            details=[
                "Looked for:",
                f"  {settings.DEFAULT_RECIPE_FILE}",
                "  *_recipe.py",
            ],
            suggestion=f"Create a recipe file:\n  {settings.DEFAULT_RECIPE_FILE}\n\nOr use a built-in recipe:\n  syncbuild run --recipe lvm2",
        )
        sys.exit(1)

    if len(recipe_files) > 1:
        file_list = "\n".join(f"  {f}" for f in recipe_files)
        console.print_error(
            "Multiple recipe files found",
            "Found multiple recipe files. Please specify which one to use:",
            details=[file_list],
            suggestion=f"Specify a recipe explicitly:\n  syncbuild run --recipe {settings.DEFAULT_RECIPE_FILE}",
        )
        sys.exit(1)

    return recipe_files[0]


def _resolve(recipe_arg: str | None, destination: str | None, reference: str | None) -> Recipe:
    """Load the recipe and apply operator overrides."""
    r = load_recipe(discover_recipe(recipe_arg))
    if destination:
        r.checkout = replace(r.checkout, destination=destination)
    if reference:
        r.checkout = replace(r.checkout, reference=reference)
    return r


recipe_option = click.option(
    "--recipe",
    default=None,
    envvar=settings.RECIPE_ENV,
    help="Built-in recipe name or recipe file (defaults to syncbuild_recipe.py if present)",
)
destination_option = click.option(
    "--destination",
    default=None,
    envvar=settings.DESTINATION_ENV,
    help="Override the checkout directory",
)
reference_option = click.option(
    "--reference",
    default=None,
    envvar=settings.REFERENCE_ENV,
    help="Override the pinned tag/branch/commit",
)


@click.group()
@click.option(
    "--debug",
    is_flag=True,
    default=False,
    help="Enable debug mode (show step output and stack traces)",
)
@click.pass_context
def cli(ctx, debug):
    """syncbuild: keep a pinned source checkout in sync and rebuild it on change."""
    console = Console(debug=debug)
    set_console(console)
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug


@cli.command()
@recipe_option
@destination_option
@reference_option
@click.pass_context
def run(ctx, recipe, destination, reference):
    """Sync the checkout and build it if it changed."""
    console = get_console()

    try:
        r = _resolve(recipe, destination, reference)
    except Exception as e:
        console.print_error(
            "Failed to load recipe",
            f"Could not load recipe {recipe or ''}".rstrip(),
            details=[str(e)],
        )
        sys.exit(1)

    console.print_debug(f"Build steps: {[s.run for s in r.build.steps]}")
    console.print_debug(f"Required tools: {r.requires}")

    try:
        console.print_run_started(
            recipe=r.name,
            repository=r.checkout.repository,
            reference=r.checkout.reference,
            destination=r.checkout.destination,
        )

        result = run_recipe(r)
        console.print_results(result)

    except RecipeError as e:
        hint = getattr(e, "hint", None) or None
        output = getattr(e, "stderr", None) or getattr(e, "stdout", None)
        console.print_failure(
            getattr(e, "step", None) or e.kind,
            str(e),
            exit_code=getattr(e, "returncode", None),
            hint=hint,
            output=output,
        )
        sys.exit(e.exit_code)
    except KeyboardInterrupt:
        console.print_info("\nInterrupted by user")
        sys.exit(130)
    except Exception as e:
        console.print_exception(e)
        sys.exit(1)


@cli.command()
@recipe_option
@destination_option
@reference_option
def status(recipe, destination, reference):
    """Show whether the checkout is at its pinned reference (no network)."""
    console = get_console()
    try:
        r = _resolve(recipe, destination, reference)
    except Exception as e:
        console.print_error("Failed to load recipe", str(e))
        sys.exit(1)

    co = r.checkout
    state = local_status(co.destination, co.reference, co.remote)
    console.print_status(r.name, co.destination, co.reference, state)
    if state != "up-to-date":
        sys.exit(1)


@cli.command(name="recipes")
def list_recipes():
    """List built-in recipes."""
    console = get_console()
    for name in sorted(BUILTIN_RECIPES):
        r = BUILTIN_RECIPES[name]()
        console.print_info(f"{name}: {r.checkout.repository}@{r.checkout.reference} -> {r.checkout.destination}")


if __name__ == "__main__":
    cli()
