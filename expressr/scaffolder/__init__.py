"""create-expressr-app scaffolder -- generates projects and applies addons.

Quick usage::

    from expressr.scaffolder import ProjectConfig, ProjectGenerator, apply_addon, load_addons

    generator = ProjectGenerator(ProjectConfig(name="my-app", port=4000))
    project_path = await generator.generate("/tmp/output")
    for addon in load_addons(config.addons_dir):
        await apply_addon(project_path, addon)
"""

from expressr.scaffolder.addons import (
    AddonDescriptor,
    FileChange,
    apply_addon,
    apply_file_changes,
    load_addons,
)
from expressr.scaffolder.generator import ProjectConfig, ProjectGenerator
from expressr.scaffolder.manifest import merge_dependencies
from expressr.scaffolder.templates import TemplateRenderer

__all__ = [
    "AddonDescriptor",
    "FileChange",
    "ProjectConfig",
    "ProjectGenerator",
    "TemplateRenderer",
    "apply_addon",
    "apply_file_changes",
    "load_addons",
    "merge_dependencies",
]
