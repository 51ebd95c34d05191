"""AO3-shaped HTML builders and a scripted stand-in for requests.Session."""

from collections import defaultdict, deque

import requests

BASE_URL = "https://ao3.test"
LOGIN_URL = f"{BASE_URL}/users/login"
DEFAULT_REQUIRED = ("Teen And Up Audiences", "No Archive Warnings Apply", "M/M", "Complete Work")


def _links(names, css="tag"):
    return ", ".join(f'<a class="{css}" href="/tags/{name}">{name}</a>' for name in names)


def entry_html(
    title="A Work",
    authors=("writer",),
    fandoms=("Star Trek",),
    required=DEFAULT_REQUIRED,
    ships=(),
    characters=(),
    tags=(),
    words="1,000",
    kudos="10",
    hits="100",
    visited="14 Dec 2024",
    visits="Visited once",
    updated="01 Dec 2024",
    with_stats=True,
    with_header=True,
    with_visited=True,
):
    """Build one <li> reading history blurb the way AO3 lays it out."""
    author_links = " ".join(f'<a rel="author" href="/users/{a}">{a}</a>' for a in authors)
    required_items = "".join(
        f'<li><a class="help symbol question modal" href="/help">'
        f'<span class="tag-span" title="{tag}"><span class="text">{tag}</span></span></a></li>'
        for tag in required
    )
    header = ""
    if with_header:
        header = f"""
  <div class="header module">
    <h4 class="heading">
      <a href="/works/1">{title}</a>
      by
      {author_links}
    </h4>
    <h5 class="fandoms heading"><span class="landmark">Fandoms:</span> {_links(fandoms)}</h5>
    <ul class="required-tags">{required_items}</ul>
    <p class="datetime">{updated}</p>
  </div>"""

    tag_items = "".join(
        f'<li class="{kind}"><a class="tag" href="/tags/{name}">{name}</a></li>'
        for kind, names in (("relationships", ships), ("characters", characters), ("freeforms", tags))
        for name in names
    )

    stats = ""
    if with_stats:
        parts = []
        if words is not None:
            parts.append(f'<dt class="words">Words:</dt><dd class="words">{words}</dd>')
        if kudos is not None:
            parts.append(f'<dt class="kudos">Kudos:</dt><dd class="kudos"><a href="/kudos">{kudos}</a></dd>')
        if hits is not None:
            parts.append(f'<dt class="hits">Hits:</dt><dd class="hits">{hits}</dd>')
        stats = f'<dl class="stats">{"".join(parts)}</dl>'

    visited_block = ""
    if with_visited:
        visited_block = f"""
  <div class="user module group">
    <h4 class="viewed heading">
      <span>Last visited:</span> {visited}
      (Latest version.)
      {visits}
    </h4>
  </div>"""

    return f"""
<li class="reading work blurb group" role="article">{header}
  <h6 class="landmark heading">Tags</h6>
  <ul class="tags commas">
    <li class="warnings"><strong><a class="tag" href="/tags/w">No Archive Warnings Apply</a></strong></li>
    {tag_items}
  </ul>
  {stats}{visited_block}
</li>"""


def page_html(*entries):
    return f"""<html><body>
<div id="main" class="readings-index dashboard region">
<ol class="reading work index group">{"".join(entries)}</ol>
</div></body></html>"""


def login_page(token="tok123", meta=True):
    meta_tag = f'<meta name="csrf-token" content="{token}"/>' if meta and token else ""
    return f"""<html><head>{meta_tag}</head><body>
<form action="/users/login" method="post"><input name="user[login]"/></form>
</body></html>"""


class FakeResponse:
    def __init__(self, text="", status_code=200, url=""):
        self.text = text
        self.status_code = status_code
        self.url = url

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error for url: {self.url}", response=self)


class FakeSession:
    """Replays scripted responses (or raises scripted exceptions) per URL."""

    def __init__(self):
        self.headers = {}
        self.routes = defaultdict(deque)
        self.calls = []

    def add(self, method, url, *outcomes):
        for outcome in outcomes:
            if isinstance(outcome, str):
                outcome = FakeResponse(outcome, url=url)
            elif isinstance(outcome, FakeResponse) and not outcome.url:
                outcome.url = url
            self.routes[(method, url)].append(outcome)
        return self

    def _dispatch(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        queue = self.routes[(method, url)]
        if not queue:
            raise AssertionError(f"unexpected {method} {url}")
        outcome = queue.popleft() if len(queue) > 1 else queue[0]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def get(self, url, **kwargs):
        return self._dispatch("GET", url, **kwargs)

    def post(self, url, **kwargs):
        return self._dispatch("POST", url, **kwargs)

    def urls(self, method="GET"):
        return [url for m, url, _ in self.calls if m == method]


def history_url(page, username="reader"):
    return f"{BASE_URL}/users/{username}/readings?page={page}"
