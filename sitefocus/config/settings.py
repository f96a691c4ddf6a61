"""
Central configuration for the sitefocus project.
"""
import os

# Scraping API configuration (ScraperAPI)
SCRAPER_CONFIG = {
    "base_url": os.getenv("SCRAPERAPI_BASE_URL", "http://api.scraperapi.com"),
    "api_key": os.getenv("SCRAPERAPI_KEY", ""),
    "render": False,
    "timeout": int(os.getenv("SCRAPERAPI_TIMEOUT", "30")),
    "retry_attempts": 2,
}

# Gemini configuration - models are tried in order until one answers
GEMINI_CONFIG = {
    "base_url": os.getenv("GEMINI_BASE_URL", "https://generativelanguage.googleapis.com/v1beta"),
    "api_key": os.getenv("GEMINI_API_KEY", ""),
    "embed_models": ["text-embedding-004", "embedding-001"],
    "generate_models": ["gemini-1.5-flash", "gemini-2.5-flash"],
    "timeout": int(os.getenv("GEMINI_TIMEOUT", "20")),
}

# Local fallback embedding model (sentence-transformers)
MODEL_CONFIG = {
    "name": os.getenv("SITEFOCUS_LOCAL_MODEL", "sentence-transformers/all-MiniLM-L6-v2"),
}

# Discovery configuration
SERPER_CONFIG = {
    "url": "https://google.serper.dev/search",
    "api_key": os.getenv("SERPER_API_KEY", ""),
    "num": 20,
    "timeout": 15,
}

SITEMAP_CONFIG = {
    "path": "/sitemap.xml",
    "max_urls": 200,
    "timeout": 15,
}

# Page text extraction
PARSER_CONFIG = {
    "max_chars": 5_000,
    "min_chars": 50,
    "strip_tags": ["script", "style", "nav", "footer", "iframe", "svg"],
}

# Batch orchestration
BATCH_CONFIG = {
    "batch_size": int(os.getenv("SITEFOCUS_BATCH_SIZE", "3")),
    "delay": float(os.getenv("SITEFOCUS_BATCH_DELAY", "1.2")),   # seconds between chunks
    "request_timeout": float(os.getenv("SITEFOCUS_REQUEST_TIMEOUT", "8")),
}

# Coherence metrics
COHERENCE_CONFIG = {
    "similarity_threshold": 0.70,
    "focus_percentile": 0.25,
    "radius_scale": 3.0,  # display normalization only
    "angle_strategy": "random",
    "version": "v1",
}

VERDICT_CONFIG = {
    "high_ratio": 80.0,
    "moderate_ratio": 50.0,
}

# Component class names (to avoid circular imports)
FETCHER_CLS_NAME = "sitefocus.core.implementations.scraperapi_fetcher.ScraperApiFetcher"
PARSER_CLS_NAME = "sitefocus.core.implementations.body_text_parser.BodyTextParser"
ENCODER_CLS_NAME = "sitefocus.core.implementations.gemini_client.GeminiEncoder"
LABELLER_CLS_NAME = "sitefocus.core.implementations.gemini_client.GeminiTopicLabeller"
