# constants.py

PROMPTS = {
    "mep": (
        "Busca la cotización actual del 'Dolar MEP' (Bolsa) venta en Argentina hoy. "
        "Responde ÚNICAMENTE con el número usando punto (.) como separador decimal y SIN separadores de miles. "
        "Ejemplo: 1185.50"
    ),
    "asset_price": "What is the current market price of {asset_name} (ticker) in USD? Return only the number.",
    "parse": """
You are a financial assistant. Analyze the user input (audio or text) to extract financial transaction details.
The user is likely speaking in Spanish about expenses, income, or investments in Argentina.
Current Dolar MEP rate is {current_mep} ARS.

Identify the TYPE: 'expense', 'income', 'investment', or 'saving'.

If it's an EXPENSE:
- Extract category (Food, Rent, Utilities, Entertainment, etc.).
- Extract concept and amount in ARS.
- ANALYZE SENTIMENT: Detect the emotional tone of the input (positive, negative, or neutral).
- SUGGEST TAGS: Based on the content and sentiment, suggest 1-3 short tags.

If it's an INVESTMENT:
- Extract the Asset Name (e.g., SPY500, Apple, Bitcoin).
- Classify 'investmentType' as 'crypto' (if BTC, ETH, SOL, Crypto) or 'traditional' (Stocks, Bonds, CEDEARs).
- Extract amount invested in ARS.

If it's SAVING (Ahorro):
- Extract concept (e.g., 'Compra dolares', 'Ahorro mes')
- Extract amount in ARS.

If it's INCOME: extract source and amount.

Return JSON.
""",
}

# JSON schema the model must answer with when parsing user input
PARSE_RESPONSE_SCHEMA = {
    "type": "object",
    "properties": {
        "type": {"type": "string", "format": "enum", "enum": ["expense", "investment", "income", "saving", "unknown"]},
        "concept": {"type": "string"},
        "amountARS": {"type": "number"},
        "assetName": {"type": "string"},
        "category": {"type": "string"},
        "sentiment": {"type": "string", "format": "enum", "enum": ["positive", "negative", "neutral"]},
        "tags": {"type": "array", "items": {"type": "string"}},
        "investmentType": {"type": "string", "format": "enum", "enum": ["traditional", "crypto"]},
    },
    "required": ["type", "amountARS"],
}

# Labels used when a record is created without an explicit category
DEFAULT_EXPENSE_CATEGORY = "General"
AI_EXPENSE_CATEGORY = "Varios"
AI_INCOME_CATEGORY = "Ingreso"
UNCATEGORIZED = "Otros"

MONTHLY_INCOME_CONCEPT = "Ingreso Mensual"
MONTHLY_INCOME_CATEGORY = "Salario"

DEFAULT_ASSET_NAME = "Activo"

CRYPTO_TICKERS = ["BTC", "ETH", "SOL", "AVAX"]
