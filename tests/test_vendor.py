import json
import os
import threading
import time

import requests

from viewnet.vendor import (
    OUIRegistry,
    VendorCache,
    VendorResolver,
    clean_vendor_name,
    lookup_static,
    parse_oui_content,
)

API_URL = "https://vendors.example/"
OUI_URL = "https://registry.example/oui.txt"

OUI_TEXT = """\
OUI/MA-L                                                    Organization
company_id                                                  Organization
                                                            Address

28-6F-B9   (hex)\t\tNokia Shanghai Bell Co., Ltd.
286FB9     (base 16)\t\tNokia Shanghai Bell Co., Ltd.
\t\t\t\tNo.388 Ning Qiao Road,Jin Qiao Pudong Shanghai

# registry comment
AB-CD-EF   (hex)\t\tExample Widgets, Inc.
00-50-56   (hex)\t\tVMware, Inc.
"""


class _Response:
    def __init__(self, status_code=200, text=""):
        self.status_code = status_code
        self.text = text


class _Session:
    """Stand-in for ``requests`` recording every URL requested."""

    def __init__(self, routes=None, error=None):
        self.routes = routes or {}
        self.error = error
        self.calls = []
        self._lock = threading.Lock()

    def get(self, url, timeout=None):
        with self._lock:
            self.calls.append((url, timeout))
        if self.error is not None:
            raise self.error
        return self.routes.get(url, _Response(404, "Not Found"))

    def urls(self):
        with self._lock:
            return [url for url, _ in self.calls]


def _resolver(tmp_path, session, **kwargs):
    return VendorResolver(
        tmp_path, session=session, registry_url=OUI_URL, api_url=API_URL, **kwargs
    )


def test_clean_vendor_name():
    assert clean_vendor_name("Apple, Inc.") == "Apple"
    assert clean_vendor_name("  Cisco Systems, Inc ") == "Cisco Systems"
    assert clean_vendor_name("Foo Corp.") == "Foo"
    # Only the first matching suffix is removed.
    assert clean_vendor_name("Bar Co., Ltd.") == "Bar Co."
    assert clean_vendor_name("X" * 60) == "X" * 50 + "..."


def test_parse_oui_content():
    parsed = parse_oui_content(OUI_TEXT)
    assert parsed == {
        "28:6F:B9": "Nokia Shanghai Bell Co.",
        "AB:CD:EF": "Example Widgets",
        "00:50:56": "VMware",
    }


def test_lookup_static():
    assert lookup_static("00:50:56:12:34:56") == "VMware"
    assert lookup_static("b8:27:eb:00:00:01") == "Raspberry Pi"
    assert lookup_static("AB:CD:EF:00:00:01") is None


def test_vendor_cache_missing_and_corrupt_files(tmp_path):
    cache = VendorCache(tmp_path / "missing.json")
    assert cache.load() == 0
    bad = tmp_path / "bad.json"
    bad.write_text("{not json")
    cache = VendorCache(bad)
    cache.load_once()
    assert len(cache) == 0


def test_vendor_cache_persists(tmp_path):
    file = tmp_path / "vendor_cache.json"
    cache = VendorCache(file)
    cache.set("00:11:22", "Acme")
    cache.save_async()
    cache.flush()
    assert json.loads(file.read_text()) == {"00:11:22": "Acme"}

    reloaded = VendorCache(file)
    reloaded.load_once()
    assert reloaded.get("00:11:22") == "Acme"


def test_vendor_cache_snapshot_is_copy(tmp_path):
    cache = VendorCache(tmp_path / "c.json")
    cache.set("00:11:22", "Acme")
    snap = cache.snapshot()
    snap["00:11:22"] = "Changed"
    assert cache.get("00:11:22") == "Acme"


def test_resolve_short_mac(tmp_path):
    session = _Session()
    resolver = _resolver(tmp_path, session)
    assert resolver.resolve("00:50") == ""
    assert session.calls == []


def test_resolve_static_table_is_cached(tmp_path):
    session = _Session()
    resolver = _resolver(tmp_path, session)
    assert resolver.resolve("00:50:56:12:34:56") == "VMware"
    resolver.flush()
    assert resolver.vendors.get("00:50:56") == "VMware"
    assert not any(url.startswith(API_URL) for url in session.urls())

    assert resolver.resolve("00:50:56:ff:ff:ff") == "VMware"
    assert not any(url.startswith(API_URL) for url in session.urls())


def test_resolve_prefers_registry_cache(tmp_path):
    (tmp_path / "ieee_oui_cache.json").write_text(json.dumps({"00:50:56": "VMware Registry"}))
    resolver = _resolver(tmp_path, _Session())
    assert resolver.resolve("00:50:56:12:34:56") == "VMware Registry"


def test_resolve_prefers_resolved_cache(tmp_path):
    (tmp_path / "vendor_cache.json").write_text(json.dumps({"00:50:56": "Cached"}))
    resolver = _resolver(tmp_path, _Session())
    assert resolver.resolve("00:50:56:12:34:56") == "Cached"


def test_resolve_online_lookup_persists(tmp_path):
    session = _Session({API_URL + "123456": _Response(200, "Acme Networks\n")})
    resolver = _resolver(tmp_path, session)
    assert resolver.resolve("12:34:56:aa:bb:cc") == "Acme Networks"
    resolver.flush()
    saved = json.loads((tmp_path / "vendor_cache.json").read_text())
    assert saved["12:34:56"] == "Acme Networks"
    timeouts = [t for url, t in session.calls if url.startswith(API_URL)]
    assert timeouts and timeouts[0] <= 2.0


def test_resolve_online_error_body_caches_unknown(tmp_path):
    body = '{"errors":{"detail":"Not Found"}}'
    session = _Session({API_URL + "123456": _Response(200, body)})
    resolver = _resolver(tmp_path, session)
    assert resolver.resolve("12:34:56:aa:bb:cc") == "Unknown"
    assert resolver.resolve("12:34:56:00:00:00") == "Unknown"
    api_calls = [url for url in session.urls() if url.startswith(API_URL)]
    assert api_calls == [API_URL + "123456"]


def test_resolve_request_exception(tmp_path):
    session = _Session(error=requests.ConnectionError("offline"))
    resolver = _resolver(tmp_path, session)
    assert resolver.resolve("12:34:56:aa:bb:cc") == "Unknown"
    resolver.flush()


def test_resolve_offline_makes_no_requests(tmp_path):
    session = _Session()
    resolver = _resolver(tmp_path, session, allow_network=False)
    assert resolver.resolve("12:34:56:aa:bb:cc") == "Unknown"
    resolver.flush()
    assert session.calls == []


def test_resolve_downloads_registry_on_first_lookup(tmp_path):
    session = _Session({OUI_URL: _Response(200, OUI_TEXT)})
    resolver = _resolver(tmp_path, session)
    assert resolver.resolve("ab:cd:ef:00:00:01") == "Example Widgets"
    assert resolver.resolve("12:34:56:aa:bb:cc") == "Unknown"
    resolver.flush()
    assert (tmp_path / "oui.txt").read_text() == OUI_TEXT
    assert json.loads((tmp_path / "ieee_oui_cache.json").read_text())["AB:CD:EF"] == "Example Widgets"
    assert resolver.resolve("ab:cd:ef:00:00:01") == "Example Widgets"
    assert session.urls().count(OUI_URL) == 1


def test_resolve_uses_fresh_local_registry_on_first_lookup(tmp_path):
    (tmp_path / "oui.txt").write_text("AB-CD-EF   (hex)\t\tExample Widgets, Inc.\n")
    session = _Session()
    resolver = _resolver(tmp_path, session, allow_network=False)
    assert resolver.resolve("ab:cd:ef:00:00:01") == "Example Widgets"
    assert resolver.vendors.get("AB:CD:EF") == "Example Widgets"
    assert resolver.resolve("ab:cd:ef:00:00:02") == "Example Widgets"
    assert session.calls == []


def test_concurrent_first_lookups_share_one_registry_load(tmp_path):
    class _SlowSession(_Session):
        def get(self, url, timeout=None):
            if url == OUI_URL:
                time.sleep(0.05)
            return super().get(url, timeout)

    session = _SlowSession({OUI_URL: _Response(200, OUI_TEXT)})
    resolver = _resolver(tmp_path, session)
    results = []
    lock = threading.Lock()

    def lookup(n):
        vendor = resolver.resolve(f"ab:cd:ef:00:00:{n:02x}")
        with lock:
            results.append(vendor)

    threads = [threading.Thread(target=lookup, args=(n,)) for n in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert results == ["Example Widgets"] * 8
    assert session.urls().count(OUI_URL) == 1


def test_failed_registry_load_is_not_retried(tmp_path):
    session = _Session()
    resolver = _resolver(tmp_path, session)
    assert resolver.resolve("12:34:56:aa:bb:cc") == "Unknown"
    assert resolver.resolve("65:43:21:aa:bb:cc") == "Unknown"
    assert session.urls().count(OUI_URL) == 1
    assert resolver.load_registry() == 0


def test_registry_reuses_fresh_local_file(tmp_path):
    (tmp_path / "oui.txt").write_text(OUI_TEXT)
    session = _Session(error=AssertionError("no download expected"))
    registry = OUIRegistry(tmp_path, session=session, url=OUI_URL)
    cache = VendorCache(tmp_path / "ieee_oui_cache.json")
    assert registry.refresh(cache) == 3
    assert cache.get("28:6F:B9") == "Nokia Shanghai Bell Co."
    assert session.calls == []


def test_registry_downloads_when_stale(tmp_path):
    stale = tmp_path / "oui.txt"
    stale.write_text("00-11-22   (hex)\t\tOld Vendor\n")
    old = time.time() - 31 * 24 * 3600
    os.utime(stale, (old, old))
    session = _Session({OUI_URL: _Response(200, OUI_TEXT)})
    registry = OUIRegistry(tmp_path, session=session, url=OUI_URL)
    cache = VendorCache(tmp_path / "ieee_oui_cache.json")
    assert registry.refresh(cache) == 3
    assert session.urls() == [OUI_URL]
    assert "00:11:22" not in cache


def test_registry_download_failure(tmp_path):
    session = _Session({OUI_URL: _Response(503, "")})
    registry = OUIRegistry(tmp_path, session=session, url=OUI_URL)
    cache = VendorCache(tmp_path / "ieee_oui_cache.json")
    assert registry.refresh(cache) == 0
    assert not (tmp_path / "ieee_oui_cache.json").exists()
