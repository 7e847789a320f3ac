"""Salon Insights: chat with a salon's business data.

Architecture Overview
=====================

A salon owner opens a session; the service loads the salon's appointments and
clients, condenses them into an **analytics context**, and answers questions
by streaming replies from Claude with that context attached.

1. **Aggregator** (``analytics/context.py``): reduces raw appointment,
   client and service records to totals, averages and a recent sample.
   Only ``completed`` appointments count toward revenue.

2. **Orchestrator** (``chat/orchestrator.py``): keeps the transcript,
   builds each request (system prompt → context exchange → history → new
   question) and appends streamed chunks to a placeholder reply.

3. **Formatter** (``analytics/markdown.py``): renders the model's small
   markdown subset (headings, bullets, bold, italic) to display markup.

Key Design Decisions
--------------------
- **LLM**: Claude via ``langchain-anthropic``, consumed with ``astream``.
- **Immutable transcript**: every chunk yields a new transcript value, so a
  reader never sees a message change under it.
- **All-or-nothing load**: appointments and clients are fetched together in
  a cancellable task; a failure leaves the context empty and shows a banner.
- **No retries**: neither the data load nor a chat turn is retried; the
  user resubmits.

Package Structure
-----------------
- ``salon_insights/config.py``: configuration from environment variables
- ``salon_insights/prompts.py``: system prompt, greeting, quick questions
- ``salon_insights/server.py``: FastAPI application
- ``salon_insights/analytics/``: aggregator, loader, parsers, markdown
- ``salon_insights/chat/``: transcript, orchestrator, sessions
- ``salon_insights/services/``: salon API client, metrics
- ``salon_insights/api/``: FastAPI routes and Pydantic schemas
"""
