# ABOUTME: Pydantic AI agent definition for the place and weather gateway.
# ABOUTME: Configures the LLM, system instructions, and imports tool registrations.

import os
from datetime import date

from dotenv import load_dotenv
from pydantic_ai import Agent, RunContext
from pydantic_ai.models.openrouter import OpenRouterModel
from pydantic_ai.providers.openrouter import OpenRouterProvider

from src.deps import GatewayDeps

load_dotenv()

_provider = OpenRouterProvider(api_key=os.environ.get("OPENROUTER_API_KEY", ""))

model = OpenRouterModel(
    os.environ.get("OPENROUTER_MODEL", "anthropic/claude-sonnet-4-5"),
    provider=_provider,
)

agent = Agent(
    model,
    deps_type=GatewayDeps,
    retries=2,
    system_prompt=(
        "You are a place and weather assistant. You help users find a location by name and "
        "show its current weather and a short forecast.\n\n"
        "When answering questions:\n"
        "1. Always call geocode_place first to get candidate locations for the place the user names.\n"
        "2. If several candidates look plausible, list them and ask the user which one they mean.\n"
        "3. Call get_forecast with the chosen candidate's latitude, longitude, and timezone, "
        "and pass its display name as the label.\n"
        "4. Forecasts cover 1 to 7 days.\n"
        "5. Present temperatures in Celsius and precipitation chances in percent.\n"
        "6. Place names and weather summaries may be Japanese. Report them as returned; do not "
        "claim a translation is authoritative.\n"
        "7. Be concise but informative. Include relevant numbers.\n"
    ),
)


@agent.instructions
def add_current_date(ctx: RunContext[GatewayDeps]) -> str:
    """Inject the current date so the LLM knows what 'today' and 'tomorrow' mean."""
    today = date.today()
    return f"Today's date is {today.isoformat()} ({today.strftime('%A')})."


# Import tools module to register @agent.tool decorators
import src.tools  # noqa: E402, F401
