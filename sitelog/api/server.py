"""
Site Log Assistant API

HTTP entry points for chatting with the assistant and executing its actions
against the action item store.
"""

import logging
from typing import Dict, Any, List, Optional

from fastapi import FastAPI, HTTPException, Query
from pydantic import BaseModel, Field

from ..assistant import ReplyOutcome, ReplyProcessor, SiteAssistant
from ..briefcase import ContextAssembler
from ..commands import CommandExtractor, normalize_action
from ..dispatcher import CommandExecutor, ExecutionResult
from ..reasoner import AssistantClient
from ..store import ActionItem, ActionItemStore, StoreUnavailableError

logger = logging.getLogger(__name__)


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str
    store: bool


class ActionRequest(BaseModel):
    """A single action, in either the current or the legacy shape."""
    action: Optional[Dict[str, Any]] = None
    userId: Optional[str] = None


class ReplyRequest(BaseModel):
    """An assistant reply that may contain an action block."""
    reply: str = Field(..., description="Assistant reply text")
    userId: Optional[str] = None


class HistoryTurn(BaseModel):
    role: str
    content: str = ""


class ChatRequest(BaseModel):
    """One user message plus the conversation so far."""
    message: str = Field(..., min_length=1, description="User message")
    userId: Optional[str] = None
    conversationHistory: List[HistoryTurn] = Field(default_factory=list)


class SearchResponse(BaseModel):
    """Action items matching a search."""
    success: bool = True
    results: List[ActionItem]
    count: int


class KeyCheckRequest(BaseModel):
    """API key to check; the configured key is used when omitted."""
    apiKey: Optional[str] = None


class KeyCheckResponse(BaseModel):
    valid: bool
    message: str


def create_app(
    store: ActionItemStore,
    extractor: Optional[CommandExtractor] = None,
    client: Optional[AssistantClient] = None,
    assembler: Optional[ContextAssembler] = None
) -> FastAPI:
    """
    Build the API around a store.

    Args:
        store: Store every request executes against
        extractor: Command extractor with the configured scan bounds
        client: Claude client for chat turns; chat is disabled without one
        assembler: Context assembler for chat turns

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(
        title="Site Log Assistant API",
        description="Executes action item commands issued by the site log assistant",
        version="0.1.0"
    )

    executor = CommandExecutor()
    processor = ReplyProcessor(extractor=extractor, executor=executor)
    assistant = SiteAssistant(client, assembler=assembler, processor=processor) if client else None

    @app.get("/health", response_model=HealthResponse)
    def health() -> HealthResponse:
        """Report whether the store is reachable."""
        store_ok = store.health_check()
        return HealthResponse(status="ok" if store_ok else "degraded", store=store_ok)

    @app.post("/api/ai-actions", response_model=ExecutionResult)
    def run_action(request: ActionRequest) -> ExecutionResult:
        """
        Execute one action.

        Args:
            request: Action body with optional acting user

        Returns:
            ExecutionResult (also for rejected commands)
        """
        if not request.action:
            raise HTTPException(status_code=400, detail="No action specified")

        command = normalize_action(request.action)
        if command is None:
            logger.warning(f"Unrecognized action body: keys={sorted(request.action)}")
            raise HTTPException(
                status_code=400,
                detail="Action must contain type/data or actionType/actionData"
            )

        return executor.execute(command, store, acting_user=request.userId)

    @app.post("/api/assistant/reply", response_model=ReplyOutcome)
    def process_reply(request: ReplyRequest) -> ReplyOutcome:
        """
        Run the command in an assistant reply, if any.

        Args:
            request: Reply body

        Returns:
            ReplyOutcome with the text to show the user
        """
        return processor.process(request.reply, store, acting_user=request.userId)

    @app.post("/api/assistant", response_model=ReplyOutcome)
    def chat(request: ChatRequest) -> ReplyOutcome:
        """
        Answer one user message with Claude and apply any action it issues.

        Args:
            request: Message, acting user and earlier turns

        Returns:
            ReplyOutcome with the text to show the user
        """
        if assistant is None:
            raise HTTPException(status_code=503, detail="Assistant is not configured")

        history = [turn.model_dump() for turn in request.conversationHistory]
        try:
            return assistant.respond(
                request.message,
                store,
                history=history,
                acting_user=request.userId
            )
        except StoreUnavailableError as e:
            logger.error(f"Cannot read action items: {e}")
            raise HTTPException(status_code=503, detail=f"Store unavailable: {e}")
        except RuntimeError as e:
            logger.error(f"Assistant turn failed: {e}")
            raise HTTPException(status_code=502, detail=str(e))

    @app.get("/api/search-action-items", response_model=SearchResponse)
    def search_action_items(
        q: str = Query("", description="Text to find in titles and descriptions"),
        limit: int = Query(10, ge=1, le=50)
    ) -> SearchResponse:
        """Case-insensitive search of action item titles and descriptions."""
        query = q.strip()
        if not query:
            raise HTTPException(status_code=400, detail="Search query is required")

        try:
            results = store.search_action_items(query, limit=limit)
        except StoreUnavailableError as e:
            logger.error(f"Search failed: {e}")
            raise HTTPException(status_code=503, detail=f"Store unavailable: {e}")

        return SearchResponse(results=results, count=len(results))

    @app.post("/api/ai/test-key", response_model=KeyCheckResponse)
    def check_key(request: KeyCheckRequest) -> KeyCheckResponse:
        """Check that an Anthropic API key can make a request."""
        if request.apiKey:
            checker = AssistantClient(api_key=request.apiKey)
        elif client is not None:
            checker = client
        else:
            raise HTTPException(status_code=400, detail="No API key provided")

        if not checker.validate_api_key():
            raise HTTPException(status_code=401, detail="Invalid API key - authentication failed")
        return KeyCheckResponse(valid=True, message="API key is valid")

    @app.get("/")
    def root() -> Dict[str, Any]:
        """Root endpoint with service information."""
        return {
            "service": "Site Log Assistant API",
            "version": "0.1.0",
            "endpoints": {
                "health": "/health",
                "actions": "/api/ai-actions (POST)",
                "reply": "/api/assistant/reply (POST)",
                "chat": "/api/assistant (POST)",
                "search": "/api/search-action-items?q= (GET)",
                "test_key": "/api/ai/test-key (POST)"
            }
        }

    return app


def main() -> None:
    """Serve the API with the store and scan bounds selected by the environment."""
    import uvicorn

    from ..config import build_store, load_config

    config = load_config()
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    client = None
    if config.anthropic_api_key:
        client = AssistantClient(
            api_key=config.anthropic_api_key,
            model=config.anthropic_model
        )
    else:
        logger.warning("ANTHROPIC_API_KEY not set; /api/assistant is disabled")

    app = create_app(
        build_store(config),
        extractor=CommandExtractor(
            max_text_length=config.max_scan_chars,
            max_candidates=config.max_candidates
        ),
        client=client,
        assembler=ContextAssembler(max_history=config.max_history)
    )

    uvicorn.run(
        app,
        host="0.0.0.0",
        port=8000,
        log_level=config.log_level.lower()
    )


if __name__ == "__main__":
    main()
