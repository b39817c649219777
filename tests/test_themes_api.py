from conftest import write


def test_list_themes(client):
    r = client.get("/api/v1/themes")
    assert r.status_code == 200

    data = r.json()
    assert data["count"] == 4
    child = next(t for t in data["themes"] if t["name"] == "child")
    assert child["chain"] == ["child", "middle", "base"]
    assert r.headers.get("X-Request-Id")


def test_theme_config(client):
    r = client.get("/api/v1/themes/config", params={"theme": "detached"})
    assert r.status_code == 200
    assert r.json()["config"]["tailwind"] == {"theme": {"colors": {"primary": "green"}}}


def test_unknown_theme_is_404(client):
    r = client.get("/api/v1/components", params={"theme": "nope"})
    assert r.status_code == 404
    assert "nope" in r.json()["detail"]


def test_components(client, frontend):
    r = client.get("/api/v1/components", params={"theme": "child"})
    assert r.status_code == 200

    components = r.json()["components"]
    assert components["Theme/components/Button"] == frontend.real(frontend.theme_file("child", "components/Button.py"))


def test_resolve_hit_and_miss(client, frontend):
    r = client.get("/api/v1/resolve", params={"theme": "child", "identifier": "Vendor_Beta::components/Card.py"})
    assert r.status_code == 200
    assert r.json()["path"] == frontend.real(frontend.theme_file("base", "components/Card.py", "Vendor_Beta"))

    r = client.get("/api/v1/resolve", params={"theme": "child", "identifier": "Vendor_Beta::components/Nope"})
    assert r.status_code == 404
    body = r.json()
    assert body["error"] == "ResolutionMiss"
    assert body["detail"] == "No component found for identifier: Vendor_Beta::components/Nope"
    assert body["request_id"]


def test_interceptors(client):
    r = client.get("/api/v1/interceptors", params={"theme": "child"})
    assert r.status_code == 200

    data = r.json()
    assert data["count"] == 1
    target = data["targets"][0]
    assert target["target"] == "Vendor_Alpha::lib/pricing"
    assert [a["name"] for a in target["advice"]] == ["alpha_rounding", "beta_pricing"]
    assert target["advice"][1]["methods"][0] == {
        "export_name": "before_format_price",
        "kind": "before",
        "target_method": "format_price",
        "sort_order": 20,
    }


def test_interceptor_source(client):
    r = client.get("/api/v1/interceptors/source", params={"theme": "child", "target": "Vendor_Alpha::lib/pricing"})
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/x-python")
    assert "_registry = InterceptionRegistry()" in r.text

    r = client.get("/api/v1/interceptors/source", params={"theme": "child", "target": "Vendor_Beta::lib/none"})
    assert r.status_code == 404


def test_export_mismatch_is_422(client, frontend):
    write(
        frontend.module_file("Vendor_Beta", "components/PricingPlugin.py"),
        """
        def before_apply_discount(amount):
            return [amount]
        """,
    )

    r = client.get("/api/v1/interceptors", params={"theme": "child"})
    assert r.status_code == 422
    assert "does not export" in r.json()["detail"]
    assert "Traceback" not in r.text


def test_metrics_endpoint(client):
    client.get("/api/v1/themes")

    r = client.get("/metrics")
    assert r.status_code == 200
    assert "layerkit_http_requests_total" in r.text
