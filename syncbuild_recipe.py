# syncbuild_recipe.py
# Recipe for building static device-mapper from lvm2 on this host.
from __future__ import annotations

from syncbuild.dsl import bash, git, recipe as make_recipe, sh


def recipe():
    return make_recipe(
        "lvm2",
        git(
            "/usr/local/lvm2",
            "https://git.fedorahosted.org/git/lvm2.git",
            "v2_02_103",
        ),
        bash(
            sh("configure", "./configure --enable-static_link"),
            sh("build device-mapper", "make device-mapper"),
            sh("install device-mapper", "make install_device-mapper"),
        ),
        requires=["git", "make", "gcc"],
    )
