from decimal import Decimal
from pathlib import Path

from fastapi.templating import Jinja2Templates

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"

def money_filter(amount) -> str:
    """A Jinja2 filter rendering a price with two decimals, or a dash when there is none."""
    if amount is None:
        return "-"
    return f"{Decimal(str(amount)):,.2f}"

# Create a single, shared Jinja2Templates instance
templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
templates.env.filters["money"] = money_filter
