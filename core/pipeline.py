from typing import Optional

from config.models import Config
from core.collectors.context_collector import ContextCollector
from core.contracts.collector import Collector
from core.contracts.models import (
    BackendKind,
    CommitMessage,
    GenerationContext,
    GenerationErrorKind,
    GenerationResult,
    MessageSource,
)
from core.llm.providers.local import LocalProvider
from core.llm.router import BackendSelection, select_backend
from core.offline.rule_engine import generate_offline_message
from core.safety.validator import is_message_safe
from utils.credentials import DEFAULT_ENV_VARS, CredentialStore, EnvCredentialStore
from utils.logger import logger
from utils.rate_limit import RateLimiter
from utils.secrets import Secret

DEFAULT_TIMEOUT_SEC = 20
LOCAL_CHECK_TIMEOUT_SEC = 5


class CommitMessageGenerator:
    """
    The main pipeline for generating commit messages.

    Collects the change set, always computes the offline message first, then
    tries the configured backend and falls back to the offline message when
    the backend fails or cites files outside the change set.
    """

    def __init__(
        self,
        config: Config,
        credential_store: Optional[CredentialStore] = None,
        rate_limiter: Optional[RateLimiter] = None,
        collector: Optional[Collector] = None,
    ):
        """
        Initializes the pipeline with the given configuration.

        Args:
            config: The configuration object.
            credential_store: Source of the hosted API key. Defaults to config + environment.
            rate_limiter: Limiter for hosted requests. Share one instance across
                generators to limit a whole process.
            collector: Context collector. Defaults to the git-backed collector.
        """
        self.config = config
        self.credential_store = credential_store
        self.rate_limiter = rate_limiter or RateLimiter(
            max_requests=config.rate_limit.max_requests,
            window_sec=config.rate_limit.window_sec,
        )
        self.collector = collector or ContextCollector(
            config.diff,
            redact=config.ai.redaction_enabled,
            persona=config.ai.persona,
        )

    @property
    def timeout_sec(self) -> float:
        return self.config.ai.timeout_sec if self.config.ai.timeout_sec > 0 else DEFAULT_TIMEOUT_SEC

    async def generate(self, repo_path: str) -> GenerationResult:
        """
        Generates a commit message for the pending changes of `repo_path`.

        Never raises for ordinary failures; errors come back as a result with
        an error kind. Cancelling the awaiting task aborts the backend call.

        Args:
            repo_path: Path of the working copy.

        Returns:
            A successful result carrying the message and its source, or a
            failure with the error kind and detail.
        """
        logger.info(f"Generating commit message with provider '{self.config.ai.provider.value}'")
        try:
            context = self.collector.collect(repo_path)
        except Exception as e:
            logger.opt(exception=e).warning(f"Context collection failed, continuing with an empty change set: {e}")
            context = GenerationContext.empty(self.config.ai.persona)
        offline = GenerationResult.success(
            generate_offline_message(context.branch, context.files),
            MessageSource.OFFLINE,
        )

        if self.config.ai.provider == BackendKind.OFFLINE:
            return offline

        try:
            selection = select_backend(self.config.ai)
            if selection is None:
                return offline
            if selection.descriptor.kind == BackendKind.LOCAL:
                return await self._generate_local(selection, context, offline)
            return await self._generate_cloud(selection, context, offline)
        except Exception as e:
            logger.opt(exception=e).error(f"Generation failed: {e}")
            return GenerationResult.failure(GenerationErrorKind.GENERATION_EXCEPTION, str(e) or type(e).__name__)

    async def generate_commit_message(self, repo_path: str) -> CommitMessage:
        """
        Same as `generate`, rendered as a commit message.

        Errors become messages titled "Error: ...".
        """
        return (await self.generate(repo_path)).render()

    async def _generate_local(
        self, selection: BackendSelection, context: GenerationContext, offline: GenerationResult
    ) -> GenerationResult:
        # Local backends do not leave the machine and are not rate limited.
        candidate = await selection.provider.generate(
            context, None, selection.descriptor.model_id, self.timeout_sec
        )
        return self._accept(candidate, context, offline, MessageSource.LOCAL)

    async def _generate_cloud(
        self, selection: BackendSelection, context: GenerationContext, offline: GenerationResult
    ) -> GenerationResult:
        if not self.rate_limiter.check():
            return GenerationResult.failure(GenerationErrorKind.RATE_LIMITED)

        store = self.credential_store or EnvCredentialStore(
            self.config.ai.api_key,
            env_vars=DEFAULT_ENV_VARS + tuple(
                v for v in [getattr(selection.provider, "api_key_env", None)] if v
            ),
        )
        try:
            credential = Secret(store.load_ai_credential() or "")
        except Exception as e:
            logger.warning(f"Could not load API key: {e}")
            return GenerationResult.failure(GenerationErrorKind.MISSING_CREDENTIAL)

        with credential:
            if not credential:
                logger.warning("Missing API key for cloud provider")
                return GenerationResult.failure(GenerationErrorKind.MISSING_CREDENTIAL)
            candidate = await selection.provider.generate(
                context, credential, selection.descriptor.model_id, self.timeout_sec
            )
        return self._accept(candidate, context, offline, MessageSource.CLOUD)

    def _accept(
        self,
        candidate: Optional[CommitMessage],
        context: GenerationContext,
        offline: GenerationResult,
        source: MessageSource,
    ) -> GenerationResult:
        if candidate is None:
            logger.info("Backend returned no usable message, using the offline message")
            return offline
        if not is_message_safe(candidate, set(context.paths)):
            logger.info("Backend message cited unknown paths, using the offline message")
            return offline
        logger.success(f"Commit message generated by {source.value} backend")
        return GenerationResult.success(candidate, source)


async def check_local_backend(url: str, model: str, timeout_sec: float = LOCAL_CHECK_TIMEOUT_SEC) -> bool:
    """
    Checks that a local backend answers with a usable message.

    Args:
        url: The local service URL (raw-generate or chat-completions).
        model: The model to request.
        timeout_sec: Timeout for the probe.
    """
    if not url or not model:
        return False
    context = GenerationContext(branch="test", files=[], diff="test")
    try:
        return await LocalProvider(url).generate(context, None, model, timeout_sec) is not None
    except Exception as e:
        logger.debug(f"Local backend check failed: {e}")
        return False
