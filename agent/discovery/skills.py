"""Skill discovery and installation.

Skills are directories holding a ``SKILL.md`` file. The relay ships its skills
under ``skills/`` at the project root and installs them into the agent's
working directory (``.claude/skills/``) once, when a new agent is created.
"""
import logging
import shutil
from pathlib import Path

from agent import PROJECT_ROOT

logger = logging.getLogger(__name__)

BUNDLED_SKILLS_DIR = PROJECT_ROOT / "skills"


def _read_description(skill_file: Path) -> str:
    """Read ``description:`` from the SKILL.md YAML frontmatter."""
    content = skill_file.read_text()
    description = "No description"
    if content.startswith('---'):
        desc_start = content.find('description:')
        if desc_start != -1:
            desc_line_start = content.find(':', desc_start) + 1
            desc_line_end = content.find('\n', desc_line_start)
            description = content[desc_line_start:desc_line_end].strip().strip('"')
    if len(description) > 80:
        description = description[:77] + "..."
    return description


def discover_skills(skills_dir: Path = BUNDLED_SKILLS_DIR) -> list[dict]:
    """Discover skills under ``skills_dir``.

    Returns:
        List of dictionaries with skill name, description and path.
    """
    skills_data = []
    if not skills_dir.exists():
        return skills_data

    for skill_path in sorted(skills_dir.glob("*/SKILL.md")):
        skill_name = skill_path.parent.name
        try:
            skills_data.append({
                "name": skill_name,
                "description": _read_description(skill_path),
                "path": skill_path.parent,
            })
        except OSError as e:
            logger.warning(f"Failed to load skill '{skill_name}': {e}")
    return skills_data


def install_skills(working_dir: Path, skills_dir: Path = BUNDLED_SKILLS_DIR) -> list[str]:
    """Copy skills into ``working_dir/.claude/skills``.

    Existing skills with the same name are replaced.

    Returns:
        Names of the installed skills.
    """
    target_root = Path(working_dir) / ".claude" / "skills"
    installed = []
    for skill in discover_skills(skills_dir):
        target = target_root / skill["name"]
        if target.exists():
            shutil.rmtree(target)
        shutil.copytree(skill["path"], target)
        installed.append(skill["name"])

    if installed:
        logger.info(f"Installed {len(installed)} skill(s) into {target_root}: {', '.join(installed)}")
    return installed
