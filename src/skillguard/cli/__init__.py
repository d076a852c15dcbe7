"""SkillGuard command-line interface."""
