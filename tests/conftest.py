import pytest

from schema_scraper import Fetcher

ANTEATER_HTML = """
<html>
  <head><title>Giant Anteater</title></head>
  <body>
    <h1 class="name" data-latin="Myrmecophaga tridactyla">Giant Anteater</h1>
    <p class="summary">Anteater: A fascinating creature</p>
    <div class="stats">
      <span class="daily-intake">500 ants</span>
      <span class="endangered">TRUE</span>
      <span class="nocturnal">0</span>
      <span class="weight">-41.5 kg</span>
    </div>
    <a class="profile" href="/anteaters/giant" data-href="">Profile</a>
    <img class="photo" data-src="" src="/img/giant.jpg" alt="Giant anteater">
    <ul class="diet">
      <li class="food-source" data-kind="insect">
        <span class="type">Ants</span>
        <span class="amount">30000 per day</span>
        <a href="/food/ants">more</a>
      </li>
      <li class="food-source" data-kind="insect">
        <span class="type">Termites</span>
        <span class="amount">5000 per day</span>
        <a href="/food/termites">more</a>
      </li>
    </ul>
  </body>
</html>
"""

PAGE_URL = "https://zoo.example.com/animals/giant-anteater"


class FakeFetcher(Fetcher):
    """In-memory fetcher recording every requested URL."""

    def __init__(self, pages=None, error=None):
        self.pages = pages or {}
        self.error = error
        self.calls = []

    async def fetch(self, url):
        self.calls.append(url)
        if self.error is not None:
            raise self.error
        return self.pages[url]


@pytest.fixture
def anteater_html():
    return ANTEATER_HTML


@pytest.fixture
def anteater_schema():
    return {
        "name": {"selector": "h1.name"},
        "latinName": {"selector": "h1.name", "attribute": "data-latin"},
        "description": {"selector": ".summary", "pattern": r"Anteater:\s*(.*)"},
        "source": {"meta": "url"},
        "stats": {
            "dailyIntake": {"selector": ".daily-intake", "type": "number"},
            "endangered": {"selector": ".endangered", "type": "boolean"},
            "nocturnal": {"selector": ".nocturnal", "type": "boolean"},
        },
        "diet": {
            "selector": ".food-source",
            "itemSchema": {
                "type": {"selector": ".type"},
                "amount": {"selector": ".amount", "type": "number"},
                "link": {"selector": "a", "attribute": "href"},
            },
        },
    }


@pytest.fixture
def fake_fetcher():
    return FakeFetcher({PAGE_URL: ANTEATER_HTML})
