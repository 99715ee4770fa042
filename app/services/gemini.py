import google.generativeai as genai
from google import genai as google_genai
from google.genai import types

from app.config import GEMINI_MODEL, GOOGLE_API_KEY

# Shared model instance; None disables every AI-backed feature
if GOOGLE_API_KEY:
    genai.configure(api_key=GOOGLE_API_KEY)
    model = genai.GenerativeModel(GEMINI_MODEL)
    # Client for market lookups grounded on Google Search
    search_client = google_genai.Client(api_key=GOOGLE_API_KEY)
else:
    model = None
    search_client = None

SEARCH_TOOL = types.Tool(google_search=types.GoogleSearch())


def search_config(temperature: float = 0) -> types.GenerateContentConfig:
    return types.GenerateContentConfig(temperature=temperature, tools=[SEARCH_TOOL])
