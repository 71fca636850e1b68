# recipes/lvm2.py
# Static device-mapper from a pinned lvm2 checkout.
from __future__ import annotations

from ..dsl import bash, git, recipe as make_recipe, script
from ..model import Recipe

DESTINATION = "/usr/local/lvm2"
REPOSITORY = "https://git.fedorahosted.org/git/lvm2.git"
REFERENCE = "v2_02_103"


def recipe() -> Recipe:
    return make_recipe(
        "lvm2",
        git(DESTINATION, REPOSITORY, REFERENCE),
        bash(
            script(
                """
                ./configure --enable-static_link
                make device-mapper
                make install_device-mapper
                """
            )
        ),
        requires=["git", "make", "gcc"],
    )
