#!/usr/bin/env python3
import getpass
import json
import logging
import os
import sys
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterator, Optional, Tuple

import requests
from bs4 import BeautifulSoup

from config import Settings, load_settings
from history_parser import extract_page
from stats import AggregateTables, StatsAggregator, TabularDataset

logger = logging.getLogger(__name__)

CredentialProvider = Callable[[], Tuple[str, str]]


class AuthenticationError(Exception):
    pass


class AuthTokenMissing(AuthenticationError):
    """The login page carried no authenticity token."""


class LoginRejected(AuthenticationError):
    """AO3 refused the login form."""


class PageFetchFailed(Exception):
    def __init__(self, page, attempts, error):
        super().__init__(f"Failed to fetch page {page} after {attempts} attempts: {error}")
        self.page = page
        self.attempts = attempts
        self.error = error


def fixed_credentials(username, password) -> CredentialProvider:
    return lambda: (username, password)


def _prompt(message, secure=False):
    while True:
        value = getpass.getpass(message) if secure else input(message).strip()
        if value:
            return value


def env_credentials():
    """
    Read AO3_USERNAME / AO3_PASSWORD, prompting for whichever is missing
    """
    username = os.environ.get('AO3_USERNAME') or _prompt("Enter your username: ")
    password = os.environ.get('AO3_PASSWORD') or _prompt("Enter your password: ", secure=True)
    return username, password


@dataclass
class SessionHandle:
    session: requests.Session
    username: str
    base_url: str

    def history_url(self, page):
        return f"{self.base_url}/users/{self.username}/readings?page={page}"


def new_session(settings):
    session = requests.Session()
    session.headers['User-Agent'] = settings.user_agent
    return session


def extract_token(html):
    soup = BeautifulSoup(html, 'html.parser')
    meta = soup.find('meta', {'name': 'csrf-token'})
    if meta and meta.get('content'):
        return meta['content']
    # Older login pages only carry the token on the form itself
    field = soup.find('input', {'name': 'authenticity_token'})
    if field and field.get('value'):
        return field['value']
    raise AuthTokenMissing("Could not find the authenticity token on the login page")


def _still_on_login_form(response):
    if not response.url.rstrip('/').endswith('/users/login'):
        return False
    soup = BeautifulSoup(response.text, 'html.parser')
    return soup.select_one('div.flash.error, div#error') is not None


def acquire_session(credentials: CredentialProvider, settings: Optional[Settings] = None,
                    session=None, sleep=time.sleep) -> SessionHandle:
    """
    Login to AO3 and return a handle bound to the authenticated session
    """
    settings = settings or load_settings()
    session = session if session is not None else new_session(settings)
    login_url = f"{settings.base_url}/users/login"

    logger.info("Getting CSRF token...")
    response = session.get(login_url, timeout=settings.request_timeout)
    response.raise_for_status()
    token = extract_token(response.text)

    if settings.login_delay:
        sleep(settings.login_delay)

    username, password = credentials()
    login_data = {
        'utf8': '✓',
        'authenticity_token': token,
        'user[login]': username,
        'user[password]': password,
        'commit': 'Log in',
    }
    logger.info("Logging in...")
    try:
        response = session.post(
            login_url,
            data=login_data,
            headers={'Referer': login_url, 'Origin': settings.base_url},
            allow_redirects=True,
            timeout=settings.request_timeout,
        )
        response.raise_for_status()
    except requests.HTTPError as error:
        raise LoginRejected(f"Login failed for {username}: {error}") from error

    if _still_on_login_form(response):
        raise LoginRejected(f"Login failed for {username}: username or password not accepted")

    logger.info("Logged in as %s", username)
    return SessionHandle(session=session, username=username, base_url=settings.base_url)


class ScrapeState(Enum):
    FETCHING = "fetching"
    PARSING = "parsing"
    WAITING = "waiting"
    DONE = "done"


@dataclass
class PageResult:
    page: int
    matched: int
    in_year: bool


@dataclass
class ScrapeResult:
    tables: AggregateTables
    dataset: TabularDataset
    pages_fetched: int


def constant_backoff(seconds):
    return lambda attempt: seconds


class HistoryScraper:
    """
    Walks the reading history one page at a time until a page has nothing
    from the target year.

    Pagination stops at the first page without any entry visited in the
    target year. That relies on AO3 listing history newest first; if pages
    ever came back out of order the run would end early and under-count.
    """

    def __init__(self, handle: SessionHandle, year, settings: Optional[Settings] = None,
                 backoff: Optional[Callable[[int], float]] = None, sleep=time.sleep):
        self.handle = handle
        self.year = str(year)
        self.settings = settings or load_settings()
        self.max_retries = self.settings.max_retries
        self.backoff = backoff or constant_backoff(self.settings.retry_delay)
        self.sleep = sleep
        self.aggregator = StatsAggregator()
        self.state = ScrapeState.FETCHING
        self.page = 1
        self.pages_fetched = 0

    def fetch(self, page):
        """GET one history page, retrying the same page on any failure."""
        url = self.handle.history_url(page)
        attempt = 0
        while True:
            attempt += 1
            try:
                response = self.handle.session.get(url, timeout=self.settings.request_timeout)
                response.raise_for_status()
                return response.text
            except requests.RequestException as error:
                logger.warning("Failed to fetch page %s (attempt %s): %s", page, attempt, error)
                if self.max_retries is not None and attempt > self.max_retries:
                    raise PageFetchFailed(page, attempt, error) from error
                delay = self.backoff(attempt)
                if delay:
                    self.sleep(delay)

    def parse(self, html):
        matched = 0
        in_year = False
        for result in extract_page(html, self.year):
            in_year = in_year or result.in_year
            if result.matched:
                self.aggregator.absorb(result.record)
                matched += 1
        return PageResult(page=self.page, matched=matched, in_year=in_year)

    def iter_pages(self) -> Iterator[PageResult]:
        while self.state is not ScrapeState.DONE:
            logger.info("Fetching page %s...", self.page)
            html = self.fetch(self.page)
            self.pages_fetched += 1

            self.state = ScrapeState.PARSING
            logger.info("Processing page...")
            result = self.parse(html)
            yield result

            if not result.in_year:
                self.state = ScrapeState.DONE
                break

            self.state = ScrapeState.WAITING
            logger.info("Waiting %s ms...", self.settings.page_delay_ms)
            self.sleep(self.settings.page_delay)
            self.page += 1
            self.state = ScrapeState.FETCHING

    def run(self) -> ScrapeResult:
        for _ in self.iter_pages():
            pass
        return self.result()

    def result(self):
        return ScrapeResult(
            tables=self.aggregator.tables,
            dataset=self.aggregator.dataset,
            pages_fetched=self.pages_fetched,
        )


def scrape_ao3_history(credentials: CredentialProvider, year, settings: Optional[Settings] = None,
                       session=None, sleep=time.sleep) -> ScrapeResult:
    """
    Login to AO3 and aggregate the user's reading history for one year
    """
    settings = settings or load_settings()
    handle = acquire_session(credentials, settings, session=session, sleep=sleep)
    return HistoryScraper(handle, year, settings, sleep=sleep).run()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    year = sys.argv[1] if len(sys.argv) > 1 else time.strftime('%Y')

    result = scrape_ao3_history(env_credentials, year)
    print(json.dumps(result.tables.to_dict(), indent=2))
