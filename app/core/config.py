"""
Application configuration (env, settings, constants).

Responsibility: Centralize config loading, environment variables, and app-wide
constants. Keeps the rest of the app decoupled from how config is sourced.
"""

import os

from dotenv import load_dotenv

load_dotenv()

SERVICE_NAME: str = "Query Routing Agent"

# Milvus Cloud (from env). Holds the question/answer records, one partition per tenant.
MILVUS_URI: str = os.getenv("MILVUS_URI", "").strip()
MILVUS_TOKEN: str = os.getenv("MILVUS_TOKEN", "").strip()
KB_COLLECTION_NAME: str = os.getenv("KB_COLLECTION_NAME", "qa_records").strip() or "qa_records"
KB_TENANT: str = os.getenv("KB_TENANT", "default_tenant").strip() or "default_tenant"

# Records are bulk-fetched and keyword-filtered; the vector field only satisfies Milvus' schema.
KB_PLACEHOLDER_DIM: int = 2

# Retrieval limits (single bounded fetch, no pagination)
KB_FETCH_LIMIT: int = int(os.getenv("KB_FETCH_LIMIT", "100"))
KB_MAX_SELECTED: int = int(os.getenv("KB_MAX_SELECTED", "3"))

# API timeouts (seconds)
LLM_API_TIMEOUT: float = 60.0

# OpenAI (streaming LLM). When set, the agent uses OpenAI instead of Hugging Face.
OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "").strip()
OPENAI_LLM_MODEL: str = (
    os.getenv("OPENAI_LLM_MODEL", "gpt-4.1").strip() or "gpt-4.1"
)
OPENAI_TEMPERATURE: float = float(os.getenv("OPENAI_TEMPERATURE", "0.7"))

# Hugging Face chat (fallback LLM when OPENAI_API_KEY is not set)
HF_API_KEY: str = os.getenv("HF_API_KEY", "").strip()
HF_CHAT_URL: str = "https://router.huggingface.co/v1/chat/completions"
HF_LLM_MODEL: str = (
    os.getenv("HF_LLM_MODEL", "meta-llama/Llama-3.2-3B-Instruct").strip()
    or "meta-llama/Llama-3.2-3B-Instruct"
)

AGENT_MAX_TOKENS: int = 1024
