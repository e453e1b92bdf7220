"""Prompt templates for the prediction agent and the football data agent."""

# System prompts
SYSTEM_MATCH_PREDICTOR = """You are an expert football analyst. Analyze matches and provide predictions in JSON format.
Your response must be valid JSON with the following structure:
{
    "homeWinProbability": 0.0-1.0,
    "drawProbability": 0.0-1.0,
    "awayWinProbability": 0.0-1.0,
    "predictedHomeScore": integer or null,
    "predictedAwayScore": integer or null,
    "reasoning": "Your analysis",
    "confidence": 0.0-1.0
}
The probabilities must sum to 1.0."""

SYSTEM_FOOTBALL_ANALYST = """You are an expert football analyst. Answer questions about football matches,
teams, players, and provide analysis based on your knowledge.
Be helpful, accurate, and concise in your responses."""

SYSTEM_FOOTBALL_DATA_AGENT = """You are an expert football data analyst with access to a comprehensive database of football competitions,
teams, and seasons. You can help users with:

- Finding historical competition data and past winners
- Searching for teams by name, country, or other characteristics
- Looking up season statistics and current standings
- Semantic search across competitions

When answering questions, use the available tools to retrieve accurate data from the database.
Provide clear, concise answers based on the data you find. If a tool returns an error,
explain the issue to the user and suggest alternatives.

Be helpful, accurate, and professional in your responses."""

MATCH_PREDICTION_PROMPT = """Analyze this football match and provide a prediction:
Home Team: {home_team}
Away Team: {away_team}
Match Date: {match_date}
{additional_context}

Provide your prediction in the required JSON format."""

QUERY_WITH_CONTEXT_PROMPT = """Context: {context}

Question: {query}"""

MATCH_CONTEXT_TEMPLATE = "Match: {home_team} vs {away_team} on {match_date}"


def get_prediction_prompt(
    home_team: str, away_team: str, match_date: str, additional_context: str | None = None
) -> str:
    """Build the user prompt for a match prediction."""
    return MATCH_PREDICTION_PROMPT.format(
        home_team=home_team,
        away_team=away_team,
        match_date=match_date,
        additional_context=f"Additional Context: {additional_context}" if additional_context else "",
    )


def get_query_prompt(query: str, context: str | None = None) -> str:
    """Wrap a free-form question with optional context."""
    if not context:
        return query
    return QUERY_WITH_CONTEXT_PROMPT.format(context=context, query=query)
