import asyncio
import os

from layerkit.core.catalog import catalog_from_dict
from layerkit.core.interception.declarations import collect_declared_advice, merge_declarations
from layerkit.core.resolution import get_merged_module_config, get_theme_config
from layerkit.core.session import BuildSession

from conftest import write


def _merged(session, theme):
    async def run():
        theme_config = await get_theme_config(session, theme)
        return await get_merged_module_config(session, theme, theme_config)

    return asyncio.run(run())


def test_module_configs_merge_in_enabled_order(frontend, session):
    merged = _merged(session, "child")
    alpha_web = os.path.join(str(frontend.module_src["Vendor_Alpha"]), "view/frontend/web")
    beta_web = os.path.join(str(frontend.module_src["Vendor_Beta"]), "view/frontend/web")

    assert merged["tailwind"]["content"] == [
        os.path.join(alpha_web, "components/**/*.py"),
        os.path.join(beta_web, "components/*.py"),
    ]
    assert merged["tailwind"]["theme"] == {"spacing": [1, 2]}
    assert [(i["name"], i["module"]) for i in merged["interceptors"]] == [
        ("alpha_rounding", "Vendor_Alpha"),
        ("beta_pricing", "Vendor_Beta"),
    ]


def test_no_theme_config_means_no_module_config(session):
    assert asyncio.run(get_merged_module_config(session, "child", None)) is None


def test_ignored_modules_lose_their_tailwind_section(frontend, session):
    write(
        frontend.theme_file("detached", "theme.config.yaml"),
        """
        include_tailwind_config_from_parent_themes: false
        ignored_tailwind_config_from_modules:
          - Vendor_Beta
        """,
    )
    merged = _merged(session, "detached")

    assert len(merged["tailwind"]["content"]) == 1
    assert "spacing" not in merged["tailwind"].get("theme", {})
    # the rest of an ignored module's config still applies
    assert [i["name"] for i in merged["interceptors"]] == ["alpha_rounding", "beta_pricing"]


def test_ignore_all(frontend, session):
    write(
        frontend.theme_file("detached", "theme.config.yaml"),
        "ignored_tailwind_config_from_modules: all\n",
    )
    merged = _merged(session, "detached")

    assert merged["tailwind"] == {}


def test_theme_override_replaces_module_config(frontend, session):
    write(
        frontend.theme_file("middle", "module.config.yaml", "Vendor_Beta"),
        """
        interceptors:
          - name: beta_pricing
            target: Vendor_Alpha::lib/pricing
            source: Vendor_Beta::components/PricingPlugin
            sort_order: 5
        """,
    )

    # child falls back to middle's override through the parent chain
    merged = _merged(session, "child")
    assert [i.get("sort_order") for i in merged["interceptors"]] == [10, 5]
    assert len(merged["tailwind"]["content"]) == 1

    # base sees the module's own file
    assert [i.get("sort_order") for i in _merged(session, "base")["interceptors"]] == [10, 20]


def test_declared_advice_sorted_per_target(session):
    declared = asyncio.run(collect_declared_advice(session, "child"))

    assert list(declared) == ["Vendor_Alpha::lib/pricing"]
    assert [(d.name, d.sort_order, d.module) for d in declared["Vendor_Alpha::lib/pricing"]] == [
        ("alpha_rounding", 10, "Vendor_Alpha"),
        ("beta_pricing", 20, "Vendor_Beta"),
    ]


def test_merge_declarations_overrides_by_name():
    entries = [
        {"name": "a", "target": "M::t", "source": "M::s", "sort_order": 50, "module": "M"},
        {"name": "b", "target": "M::t", "source": "M::s2", "module": "M"},
        {"name": "a", "target": "M::t", "sort_order": 1, "module": "N"},
        {"name": "c", "target": "M::u", "source": "M::s3", "sort_order": 0},
    ]
    declared = merge_declarations(entries)

    assert [(d.name, d.sort_order, d.module, d.source) for d in declared["M::t"]] == [
        ("a", 1, "M", "M::s"),
        ("b", 10, "M", "M::s2"),
    ]
    assert declared["M::u"][0].sort_order == 0


def test_merge_declarations_drops_inactive_and_incomplete():
    entries = [
        {"name": "a", "target": "M::t", "source": "M::s"},
        {"name": "a", "target": "M::t", "active": False},
        {"name": "b", "target": "M::t", "source": "M::s", "sort_order": None},
        {"target": "M::t", "source": "M::s"},
        {"name": "c", "target": "M::t", "sort_order": "not a number"},
    ]
    declared = merge_declarations(entries)

    assert [(d.name, d.sort_order) for d in declared["M::t"]] == [("b", 10)]


def test_inline_module_config_is_not_rewritten_between_themes(frontend):
    frontend.module_file("Vendor_Alpha", "module.config.yaml").unlink()
    data = frontend.catalog_data()
    data["modules"]["Vendor_Alpha"]["src"] = "mods/Alpha"
    data["modules"]["Vendor_Alpha"]["config"] = {"tailwind": {"content": ["c/*.py"]}}
    session = BuildSession(catalog_from_dict(data), settings=frontend.settings)

    expected = os.path.join("mods/Alpha", "view/frontend/web", "c/*.py")
    assert _merged(session, "base")["tailwind"]["content"][0] == expected
    assert _merged(session, "detached")["tailwind"]["content"][0] == expected
    assert session.catalog.get_module("Vendor_Alpha").config == {"tailwind": {"content": ["c/*.py"]}}


def test_merged_config_copies_are_independent(session):
    first = _merged(session, "child")
    first["interceptors"].clear()

    assert len(_merged(session, "child")["interceptors"]) == 2
