"""Report generation for crawl results.

Three deliverables are produced from a ``CrawlResult``:
- an Excel workbook with the accepted products, every extracted product
  and a crawl summary
- a JSON array of the accepted products for downstream tooling
- a standalone Plotly HTML dashboard for eyeballing the candidates
"""

import json
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import pandas as pd
import plotly.graph_objects as go
from plotly.subplots import make_subplots

from config.settings import GlobalConfig, get_config
from productscout.exceptions import ReportGenerationError
from productscout.logger import get_logger
from productscout.models import Product
from productscout.scraper import CrawlResult

log = get_logger(__name__)

PRODUCT_COLUMNS = [
    "name",
    "price",
    "rank",
    "review_count",
    "length",
    "width",
    "height",
    "weight",
    "unparsed",
    "link",
]


def products_to_dataframe(products: list[Product]) -> pd.DataFrame:
    """Flatten products into one row each, ``unparsed`` as a sorted string."""
    records = [
        {**product.model_dump(exclude={"unparsed"}), "unparsed": ", ".join(sorted(product.unparsed))}
        for product in products
    ]
    return pd.DataFrame(records, columns=PRODUCT_COLUMNS)


class ReportGenerator:
    """Writes crawl results to Excel, JSON and HTML.

    Attributes:
        config: GlobalConfig instance for output paths.

    Example:
        reporter = ReportGenerator()
        paths = reporter.generate_all(result)
    """

    def __init__(self, config: GlobalConfig | None = None) -> None:
        self.config = config or get_config()
        self._timestamp = datetime.now(UTC).strftime("%Y%m%d_%H%M%S")

    def _ensure_output_dir(self) -> Path:
        """Create the output directory if needed.

        Raises:
            ReportGenerationError: If directory cannot be created.
        """
        try:
            self.config.output_dir.mkdir(parents=True, exist_ok=True)
            return self.config.output_dir
        except OSError as exc:
            raise ReportGenerationError(
                report_type="output_directory",
                reason=f"Cannot create output directory: {exc}",
                output_path=str(self.config.output_dir),
            ) from exc

    def _summary(self, result: CrawlResult) -> dict[str, Any]:
        criteria = self.config.criteria
        return {
            "Report Generated": datetime.now(UTC).isoformat(),
            "Links Crawled": result.total_links,
            "Products Extracted": len(result.products),
            "Products Accepted": len(result.accepted),
            "Failed Links": len(result.failed_links),
            "Cancelled Links": result.cancelled,
            "Fetch Success Rate": f"{result.fetch_success_rate:.1%}",
            "Acceptance Rate": f"{result.acceptance_rate:.1%}",
            "Incomplete Products": sum(1 for p in result.products if not p.is_complete),
            "Price Range": f"${criteria.min_price:.2f} - ${criteria.max_price:.2f}",
            "Rank Range": f"{criteria.min_rank} - {criteria.max_rank}",
            "Review Range": f"{criteria.min_reviews} - {criteria.max_reviews}",
            "Tolerance": f"{criteria.tolerance}%",
        }

    def generate_excel(self, result: CrawlResult, filename: str | None = None) -> Path:
        """Write the crawl to a workbook.

        Sheets: "Accepted Products", "All Products", "Summary".

        Raises:
            ReportGenerationError: If the workbook cannot be written.
        """
        output_dir = self._ensure_output_dir()
        filename = filename or f"productscout_export_{self._timestamp}"
        output_path = output_dir / f"{filename}.xlsx"

        log.info("Generating Excel report", output_path=str(output_path))

        try:
            with pd.ExcelWriter(output_path, engine="openpyxl") as writer:
                products_to_dataframe(result.accepted).to_excel(
                    writer, sheet_name="Accepted Products", index=False
                )
                products_to_dataframe(result.products).to_excel(
                    writer, sheet_name="All Products", index=False
                )
                pd.DataFrame([self._summary(result)]).to_excel(
                    writer, sheet_name="Summary", index=False
                )
        except Exception as exc:
            raise ReportGenerationError(
                report_type="Excel",
                reason=str(exc),
                output_path=str(output_path),
            ) from exc

        log.info(
            "Excel report generated successfully",
            output_path=str(output_path),
            accepted=len(result.accepted),
        )
        return output_path

    def generate_json(self, result: CrawlResult, filename: str | None = None) -> Path:
        """Write the accepted products as a JSON array.

        Raises:
            ReportGenerationError: If the file cannot be written.
        """
        output_dir = self._ensure_output_dir()
        filename = filename or f"productscout_accepted_{self._timestamp}"
        output_path = output_dir / f"{filename}.json"

        payload = [product.model_dump(mode="json") for product in result.accepted]
        for entry in payload:
            entry["unparsed"] = sorted(entry["unparsed"])

        try:
            output_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        except OSError as exc:
            raise ReportGenerationError(
                report_type="JSON",
                reason=str(exc),
                output_path=str(output_path),
            ) from exc

        log.info("JSON export written", output_path=str(output_path), accepted=len(payload))
        return output_path

    def generate_dashboard(self, result: CrawlResult, filename: str | None = None) -> Path:
        """Write a standalone HTML dashboard of the crawl.

        Panels: price distribution, sales rank against review count,
        shipping weight distribution, and crawl outcome.

        Raises:
            ReportGenerationError: If there are no products or writing fails.
        """
        output_dir = self._ensure_output_dir()
        filename = filename or f"productscout_dashboard_{self._timestamp}"
        output_path = output_dir / f"{filename}.html"

        if not result.products:
            raise ReportGenerationError(
                report_type="Dashboard",
                reason="No products available for visualization",
                output_path=str(output_path),
            )

        log.info("Generating HTML dashboard", output_path=str(output_path))

        try:
            df = products_to_dataframe(result.products)
            accepted_links = {product.link for product in result.accepted}
            df["status"] = df["link"].map(
                lambda link: "Accepted" if link in accepted_links else "Rejected"
            )

            fig = make_subplots(
                rows=2,
                cols=2,
                subplot_titles=(
                    "Price Distribution",
                    "Sales Rank vs Reviews",
                    "Shipping Weight",
                    "Crawl Outcome",
                ),
                specs=[
                    [{"type": "histogram"}, {"type": "scatter"}],
                    [{"type": "histogram"}, {"type": "pie"}],
                ],
                vertical_spacing=0.12,
                horizontal_spacing=0.1,
            )

            priced = df[df["price"] > 0]
            fig.add_trace(
                go.Histogram(
                    x=priced["price"],
                    nbinsx=20,
                    name="Price",
                    marker_color="#3498db",
                    hovertemplate="Price: $%{x}<br>Count: %{y}<extra></extra>",
                ),
                row=1,
                col=1,
            )

            for status, color in (("Accepted", "#27ae60"), ("Rejected", "#e74c3c")):
                subset = df[(df["status"] == status) & (df["rank"] > 0)]
                fig.add_trace(
                    go.Scatter(
                        x=subset["rank"],
                        y=subset["review_count"],
                        mode="markers",
                        name=status,
                        marker_color=color,
                        text=subset["name"].str[:40],
                        hovertemplate="<b>%{text}</b><br>Rank: #%{x}<br>Reviews: %{y}<extra></extra>",
                    ),
                    row=1,
                    col=2,
                )

            weighed = df[df["weight"] > 0]
            fig.add_trace(
                go.Histogram(
                    x=weighed["weight"],
                    nbinsx=20,
                    name="Weight",
                    marker_color="#9b59b6",
                    hovertemplate="Weight: %{x}<br>Count: %{y}<extra></extra>",
                ),
                row=2,
                col=1,
            )

            fig.add_trace(
                go.Pie(
                    labels=["Accepted", "Rejected", "Failed", "Cancelled"],
                    values=[
                        len(result.accepted),
                        len(result.products) - len(result.accepted),
                        len(result.failed_links),
                        result.cancelled,
                    ],
                    marker_colors=["#27ae60", "#e74c3c", "#7f8c8d", "#f39c12"],
                    hovertemplate="%{label}: %{value} (%{percent})<extra></extra>",
                ),
                row=2,
                col=2,
            )

            fig.update_layout(
                title={
                    "text": (
                        f"<b>ProductScout Dashboard</b><br>"
                        f"<sup>Links: {result.total_links} | "
                        f"Extracted: {len(result.products)} | "
                        f"Accepted: {len(result.accepted)} | "
                        f"Generated: {datetime.now(UTC).strftime('%Y-%m-%d %H:%M UTC')}</sup>"
                    ),
                    "x": 0.5,
                    "xanchor": "center",
                },
                height=800,
                template="plotly_white",
                font={"family": "Arial, sans-serif"},
            )
            fig.update_xaxes(title_text="Price ($)", row=1, col=1)
            fig.update_xaxes(title_text="Sales Rank", type="log", row=1, col=2)
            fig.update_yaxes(title_text="Reviews", row=1, col=2)
            fig.update_xaxes(title_text="Weight (as listed)", row=2, col=1)

            fig.write_html(str(output_path), include_plotlyjs=True, full_html=True)

        except Exception as exc:
            raise ReportGenerationError(
                report_type="Dashboard",
                reason=str(exc),
                output_path=str(output_path),
            ) from exc

        log.info(
            "HTML dashboard generated successfully",
            output_path=str(output_path),
            total_products=len(result.products),
        )
        return output_path

    def generate_all(self, result: CrawlResult) -> dict[str, Path]:
        """Generate every report type, keyed by "excel", "json" and "dashboard"."""
        return {
            "excel": self.generate_excel(result),
            "json": self.generate_json(result),
            "dashboard": self.generate_dashboard(result),
        }
