"""ProductScout core package.

Turns marketplace product pages into typed records and decides whether
each record meets a set of numeric acceptance criteria:
- fields: tolerant parsers for the individual product fields
- document: named-region text access over a parsed product page
- extractor: assembles a Product from a parsed page
- models: Product and Criteria value records
- validator: tolerance-aware acceptance filter
- browser: Playwright page fetching
- scraper: per-link fetch with cancellation and the concurrent crawl
- reporter: Excel, JSON and Plotly exports of a crawl
- logger: loguru configuration
- exceptions: custom exception hierarchy
"""

__version__ = "1.0.0"
