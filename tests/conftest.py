import textwrap
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from layerkit.api.main import app
from layerkit.core.catalog import catalog_from_dict
from layerkit.core.session import BuildSession
from layerkit.core.settings import MODULE_WEB_PATH, THEME_WEB_PATH, Settings


def write(path: Path, text: str = "") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(textwrap.dedent(text).lstrip(), encoding="utf-8")
    return path


PRICING = """
TAX_RATE = 0.25


class Money:
    def __init__(self, amount):
        self.amount = amount


def format_price(amount, currency="USD"):
    return f"{amount:.2f} {currency}"


def greet(name):
    return f"Hello {name}"


async def fetch_label(code):
    return f"label:{code}"
"""

ROUNDING = """
CALLS = []


def before_format_price(amount, currency="USD"):
    return [round(amount)]


def beforeGreet(name):
    CALLS.append(name)
"""

PRICING_PLUGIN = """
def before_format_price(amount, currency="USD"):
    return [amount * 1.25]


def around_greet(proceed, name):
    return "<" + proceed(name.upper()) + ">"


async def after_fetch_label(result, code):
    return result + "!"
"""


class Frontend:
    """
    A small frontend on disk:

      Vendor_Alpha, Vendor_Beta   enabled modules
      Vendor_Gamma                declared but disabled
      base <- middle <- child     theme chain
      detached (parent base)      does not inherit parent config
    """

    def __init__(self, root: Path):
        self.root = root
        self.module_src = {
            "Vendor_Alpha": root / "app" / "code" / "Vendor" / "Alpha",
            "Vendor_Beta": root / "app" / "code" / "Vendor" / "Beta",
            "Vendor_Gamma": root / "app" / "code" / "Vendor" / "Gamma",
        }
        self.theme_src = {
            name: root / "design" / "frontend" / "Vendor" / name
            for name in ("base", "middle", "child", "detached")
        }
        self.settings = Settings(precompiled_dir=root / ".precompiled", current_theme="child")

    # --- paths ---

    def module_file(self, module: str, rel: str) -> Path:
        return self.module_src[module] / MODULE_WEB_PATH / rel

    def theme_file(self, theme: str, rel: str, module: str | None = None) -> Path:
        base = self.theme_src[theme]
        if module is not None:
            base = base / module
        return base / THEME_WEB_PATH / rel

    @staticmethod
    def real(path: Path) -> str:
        return str(path.resolve())

    # --- catalog / session ---

    def catalog_data(self) -> dict:
        return {
            "modules": {name: {"src": str(src)} for name, src in self.module_src.items()},
            "themes": {
                "base": {"src": str(self.theme_src["base"])},
                "middle": {"src": str(self.theme_src["middle"]), "parent": "base"},
                "child": {"src": str(self.theme_src["child"]), "parent": "middle"},
                "detached": {"src": str(self.theme_src["detached"]), "parent": "base"},
            },
            "all_modules": ["Vendor_Alpha", "Vendor_Beta"],
        }

    def catalog(self):
        return catalog_from_dict(self.catalog_data())

    def session(self, **kwargs) -> BuildSession:
        kwargs.setdefault("settings", self.settings)
        return BuildSession(self.catalog(), **kwargs)

    # --- content ---

    def populate(self) -> "Frontend":
        write(self.module_file("Vendor_Alpha", "components/Button.py"), "LABEL = 'alpha'\n")
        write(self.module_file("Vendor_Alpha", "components/forms/Input.py"), "LABEL = 'alpha input'\n")
        write(self.module_file("Vendor_Alpha", "components/notes.txt"), "not a component\n")
        write(self.module_file("Vendor_Alpha", "components/Rounding.py"), ROUNDING)
        write(self.module_file("Vendor_Alpha", "lib/pricing.py"), PRICING)
        write(self.module_file("Vendor_Alpha", "lib/legacy.pyw"), "LABEL = 'gui only'\n")
        write(
            self.module_file("Vendor_Alpha", "module.config.yaml"),
            """
            tailwind:
              content:
                - components/**/*.py
            interceptors:
              - name: alpha_rounding
                target: Vendor_Alpha::lib/pricing
                source: Vendor_Alpha::components/Rounding
                sort_order: 10
            """,
        )

        write(self.module_file("Vendor_Beta", "components/Button.py"), "LABEL = 'beta'\n")
        write(self.module_file("Vendor_Beta", "components/Card.py"), "LABEL = 'beta card'\n")
        write(self.module_file("Vendor_Beta", "components/PricingPlugin.py"), PRICING_PLUGIN)
        write(
            self.module_file("Vendor_Beta", "module.config.yaml"),
            """
            tailwind:
              content:
                - components/*.py
              theme:
                spacing: [1, 2]
            interceptors:
              - name: beta_pricing
                target: Vendor_Alpha::lib/pricing
                source: Vendor_Beta::components/PricingPlugin
                sort_order: 20
            """,
        )

        write(self.module_file("Vendor_Gamma", "components/Card.py"), "LABEL = 'gamma card'\n")

        write(
            self.theme_file("base", "theme.config.yaml"),
            """
            ignored_css_from_modules:
              - Vendor_Alpha
            tailwind:
              content:
                - components/**/*.py
              theme:
                colors:
                  primary: blue
            """,
        )
        write(self.theme_file("base", "components/Button.py", module="Vendor_Alpha"), "LABEL = 'base alpha'\n")
        write(self.theme_file("base", "components/Card.py", module="Vendor_Beta"), "LABEL = 'base beta card'\n")

        write(
            self.theme_file("middle", "theme.config.yaml"),
            """
            ignored_css_from_modules:
              - Vendor_Beta
            tailwind:
              theme:
                colors:
                  accent: red
            """,
        )
        write(self.theme_file("middle", "components/Button.py", module="Vendor_Alpha"), "LABEL = 'middle alpha'\n")
        write(self.theme_file("middle", "components/Button.py", module="Vendor_Beta"), "LABEL = 'middle beta'\n")
        write(self.theme_file("middle", "components/Card.py", module="Vendor_Gamma"), "LABEL = 'middle gamma'\n")

        write(self.theme_file("child", "theme.config.yaml"), "")
        write(self.theme_file("child", "components/Button.py"), "LABEL = 'child root'\n")
        write(self.theme_file("child", "components/forms/Input.py", module="Vendor_Alpha"), "LABEL = 'child input'\n")

        write(
            self.theme_file("detached", "theme.config.yaml"),
            """
            include_tailwind_config_from_parent_themes: false
            tailwind:
              theme:
                colors:
                  primary: green
            """,
        )
        return self


@pytest.fixture()
def frontend(tmp_path: Path) -> Frontend:
    return Frontend(tmp_path).populate()


@pytest.fixture()
def session(frontend: Frontend) -> BuildSession:
    return frontend.session()


@pytest.fixture()
def client(session: BuildSession):
    app.state.session = session
    try:
        yield TestClient(app)
    finally:
        app.state.session = None
