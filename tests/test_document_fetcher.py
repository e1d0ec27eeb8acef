import httpx

from app.services.crawl.fetcher import DocumentFetcher


def _fetcher(handler):
    return DocumentFetcher(client=httpx.Client(transport=httpx.MockTransport(handler)))


def test_fetch_parses_page_and_resolves_relative_links():
    def handler(request):
        html = '<a href="/kazan/avia.htm">Авиастроительный</a><a href="">пусто</a>'
        return httpx.Response(200, text=html, headers={"content-type": "text/html; charset=utf-8"})

    doc = _fetcher(handler).fetch("https://edu.tatar.ru/index.htm")
    assert doc is not None
    assert doc.url == "https://edu.tatar.ru/index.htm"
    links = doc.css("a")
    assert doc.abs_url(links[0]) == "https://edu.tatar.ru/kazan/avia.htm"
    assert doc.abs_url(links[1]) == ""


def test_fetch_returns_none_on_http_error_status():
    fetcher = _fetcher(lambda request: httpx.Response(404, text="not found"))
    assert fetcher.fetch("https://edu.tatar.ru/missing.htm") is None


def test_fetch_returns_none_on_transport_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    assert _fetcher(handler).fetch("https://edu.tatar.ru/index.htm") is None
