"""Tests for virtual path resolution."""

from pathlib import Path

import pytest

from liftkit.errors import UnsafePathError
from liftkit.paths import alias_to_dir, match_role, resolve_target_path

ALIASES = {
    "components": "@/components",
    "ui": "@/components/ui",
    "lib": "@/lib",
    "hooks": "@/hooks",
}


@pytest.fixture
def base(tmp_path):
    return tmp_path / "app"


class TestAliasToDir:
    def test_at_prefix(self):
        assert alias_to_dir("@/components") == "src/components"
        assert alias_to_dir("@/lib/", source_dir="app") == "app/lib"

    def test_bare_at(self):
        assert alias_to_dir("@") == "src"

    def test_non_at_alias_kept(self):
        assert alias_to_dir("~/components") == "~/components"


class TestMatchRole:
    def test_any_platform(self):
        assert match_role("registry/nextjs/lib/utils.ts", ALIASES) == ("@/lib", "utils.ts")
        assert match_role("registry/universal/lib/tokens.css", ALIASES) == ("@/lib", "tokens.css")

    def test_optional_at_prefix(self):
        assert match_role("@/registry/nextjs/hooks/use-x.ts", ALIASES) == ("@/hooks", "use-x.ts")

    def test_unknown_role(self):
        assert match_role("registry/nextjs/styles/a.css", ALIASES) is None

    def test_role_missing_from_table_uses_default(self):
        assert match_role("registry/nextjs/blocks/hero.tsx", ALIASES) == (
            "@/components/blocks",
            "hero.tsx",
        )

    def test_extra_role_from_table(self):
        aliases = {**ALIASES, "icons": "@/icons"}
        assert match_role("registry/nextjs/icons/star.tsx", aliases) == ("@/icons", "star.tsx")


class TestResolveTargetPath:
    def test_components_alias(self, base):
        target = resolve_target_path("registry/nextjs/components/button.tsx", ALIASES, base)
        assert target == base / "src" / "components" / "button.tsx"

    def test_ui_alias(self, base):
        target = resolve_target_path("registry/nextjs/ui/dialog.tsx", ALIASES, base)
        assert target == base / "src" / "components" / "ui" / "dialog.tsx"

    def test_nested_remainder(self, base):
        target = resolve_target_path("registry/nextjs/lib/theme/tokens.ts", ALIASES, base)
        assert target == base / "src" / "lib" / "theme" / "tokens.ts"

    def test_custom_source_dir(self, base):
        target = resolve_target_path("registry/x/hooks/use-a.ts", ALIASES, base, source_dir="app")
        assert target == base / "app" / "hooks" / "use-a.ts"

    def test_no_alias_table_preserves_path(self, base):
        target = resolve_target_path("registry/nextjs/components/button.tsx", None, base)
        assert target == base / "registry" / "nextjs" / "components" / "button.tsx"

    def test_no_alias_table_flattened(self, base):
        target = resolve_target_path(
            "registry/nextjs/components/button.tsx", None, base, preserve_subdirectories=False
        )
        assert target == base / "button.tsx"

    def test_unmatched_with_aliases(self, base):
        target = resolve_target_path("styles/theme.css", ALIASES, base)
        assert target == base / "styles" / "theme.css"

    def test_pure(self, base):
        resolve_target_path("registry/nextjs/components/a.tsx", ALIASES, base)
        assert not base.exists()

    def test_absolute(self):
        target = resolve_target_path("registry/nextjs/lib/a.ts", ALIASES, Path("relative/app"))
        assert target.is_absolute()

    def test_parent_segments_cannot_leave_project(self):
        with pytest.raises(UnsafePathError) as exc:
            resolve_target_path(
                "registry/nextjs/components/../../../../etc/x",
                {"components": "@/components"},
                Path("/project"),
            )
        assert exc.value.path == "registry/nextjs/components/../../../../etc/x"
        assert exc.value.base_dir == "/project"

    def test_absolute_virtual_path_rejected(self):
        with pytest.raises(UnsafePathError):
            resolve_target_path("/etc/passwd", None, Path("/project"))

    def test_flattened_parent_segment_rejected(self):
        with pytest.raises(UnsafePathError):
            resolve_target_path("registry/..", None, Path("/project"), preserve_subdirectories=False)

    def test_parent_segments_inside_project_allowed(self, base):
        target = resolve_target_path("registry/nextjs/lib/../hooks/use-a.ts", None, base)
        assert target == base / "registry" / "nextjs" / "hooks" / "use-a.ts"
