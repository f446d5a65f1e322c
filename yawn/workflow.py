"""
Commit Workflow

Drives one run of the tool, gate by gate:

    API key -> any changes? -> staged? -> diff -> generate -> commit -> push

A gate either lets the run continue, ends it early without an error
(nothing to commit, no remotes, push declined), or raises WorkflowError
with a message ready to show the user.
"""

import time
from enum import Enum
from typing import Callable, Optional

from yawn.config import ConfigError, ResolvedConfig, persist_api_key
from yawn.git import (
    GitClient,
    GitError,
    Pusher,
    SSHAgentMissingError,
    SSHCheckError,
    check_ssh_keys_available,
)
from yawn.llm import (
    TextGenerator,
    LLMError,
    TokenLimitError,
    AuthenticationError,
    RateLimitError,
    SafetyError,
    GenerationTimeoutError,
    EmptyResponseError,
    build_prompt,
    estimate_token_count,
)
from yawn.output import (
    Spinner,
    ask_for_input,
    ask_yes_no,
    bold,
    debug,
    dim,
    print_info,
    print_repo_link,
    print_success,
    print_warning,
)

SSH_POLL_INTERVAL = 0.5
TOKEN_COUNT_TIMEOUT = 5.0


class WorkflowError(Exception):
    """A fatal problem that ends the run. The message is user-facing."""
    pass


class StreamInterruptedError(LLMError):
    """The stream failed after part of the message was already shown."""
    pass


class WorkflowOutcome(Enum):
    NOTHING_TO_COMMIT = "nothing_to_commit"
    COMMITTED = "committed"
    NO_REMOTES = "no_remotes"
    PUSHED = "pushed"


# Failures another model cannot fix
_NOT_RETRYABLE = (TokenLimitError, AuthenticationError, GenerationTimeoutError, StreamInterruptedError)


class CommitWorkflow:
    """Stages, generates, commits and pushes for one repository."""

    def __init__(
        self,
        resolved: ResolvedConfig,
        git: GitClient,
        generator: TextGenerator,
        pusher: Optional[Pusher] = None,
        *,
        ask_yes_no: Callable[..., bool] = ask_yes_no,
        ask_for_input: Callable[..., str] = ask_for_input,
        save_api_key: Callable[[str], object] = persist_api_key,
        ssh_key_check: Callable[[], bool] = check_ssh_keys_available,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.config = resolved.config
        self.provenance = resolved.provenance
        self.git = git
        self.generator = generator
        self.pusher = pusher or Pusher(git)
        self.api_key = self.config.api_key
        self._ask_yes_no = ask_yes_no
        self._ask_for_input = ask_for_input
        self._save_api_key = save_api_key
        self._ssh_key_check = ssh_key_check
        self._clock = clock
        self._sleep = sleep

    def _debug(self, message: str) -> None:
        debug("APP", message, self.config.verbose)

    def _enabled_via(self, name: str) -> str:
        return f"enabled via {self.provenance[name]}"

    def run(self) -> WorkflowOutcome:
        self._ensure_api_key()

        if not self._has_changes():
            print_info("No changes detected for commit.")
            return WorkflowOutcome.NOTHING_TO_COMMIT

        self._ensure_staged_changes()
        diff = self._get_staged_diff()
        message = self._generate_message(diff)
        self._commit(message)
        return self._handle_push()

    # -- prerequisites ----------------------------------------------------

    def _ensure_api_key(self) -> None:
        if self.api_key:
            self.generator.set_api_key(self.api_key)
            return

        print_info("No API key found. Please provide your Anthropic API key.")
        print(dim("  You can create one at https://console.anthropic.com/settings/keys"))
        api_key = self._ask_for_input("Enter your Anthropic API key:", secret=True)
        if not api_key:
            raise WorkflowError("API key is required")

        try:
            path = self._save_api_key(api_key)
            print_success(f"Saved API key to {path}")
        except (OSError, ConfigError) as e:
            print_warning(f"Failed to save API key to config file: {e}")

        self.api_key = api_key
        self.generator.set_api_key(api_key)

    def _has_changes(self) -> bool:
        try:
            found = self.git.has_any_changes()
        except GitError as e:
            raise WorkflowError(f"Failed to check for changes: {e}") from e
        self._debug(f"Found changes to commit: {found}")
        return found

    def _ensure_staged_changes(self) -> None:
        try:
            if self.git.has_staged_changes():
                self._debug("Changes are already staged")
                return
            has_unstaged = self.git.has_unstaged_changes()
        except GitError as e:
            raise WorkflowError(f"Failed to check for staged changes: {e}") from e

        if not has_unstaged:
            raise WorkflowError("Changes were reported but nothing is staged or unstaged. Check 'git status'.")

        if self.config.auto_stage:
            print_info(f"Auto-staging changes ({self._enabled_via('auto_stage')})...")
        elif not self._ask_yes_no("You have unstaged changes. Would you like to stage them?", True):
            raise WorkflowError("Staging required to proceed")

        try:
            self.git.stage_all()
        except GitError as e:
            raise WorkflowError(f"Failed to stage changes: {e}") from e
        print_success("Successfully staged changes.")

    def _get_staged_diff(self) -> str:
        try:
            diff = self.git.get_staged_diff()
        except GitError as e:
            raise WorkflowError(f"Failed to get staged changes: {e}") from e
        if not diff.strip():
            raise WorkflowError("No staged changes to commit")
        return diff

    # -- generation -------------------------------------------------------

    def _gather_commit_info(self) -> tuple[str, int, int]:
        try:
            branch = self.git.get_current_branch()
        except GitError as e:
            self._debug(f"Failed to get current branch: {e}")
            branch = "unknown"

        try:
            additions, deletions = self.git.get_diff_numstat_summary()
        except GitError as e:
            self._debug(f"Failed to get diff stats: {e}")
            additions, deletions = 0, 0

        return branch, additions, deletions

    def _count_tokens(self, prompt: str) -> str:
        try:
            return str(self.generator.count_tokens(self.config.model, prompt, TOKEN_COUNT_TIMEOUT))
        except LLMError as e:
            self._debug(f"Failed to count tokens: {e}")
            return "?"

    def _print_pre_generation_info(self, prompt: str) -> None:
        branch, additions, deletions = self._gather_commit_info()
        tokens = self._count_tokens(prompt)
        print_info(
            f"Branch {bold(branch)} {dim('|')} "
            f"+{additions} -{deletions} {dim('|')} "
            f"{tokens} / {self.config.max_tokens} tokens"
        )

    def _stream_once(self, model: str, diff: str, deadline: float) -> str:
        remaining = deadline - self._clock()
        if remaining <= 0:
            raise GenerationTimeoutError("Deadline expired before the request was sent")

        self._debug(f"Generating with {self.generator.name} model {model} (timeout {remaining:.1f}s)")
        chunks = []
        spinner = Spinner(f"Generating commit message with {self.generator.name}").start()
        try:
            stream = self.generator.generate(
                model, self.config.prompt, diff,
                self.config.max_tokens, self.config.temperature, remaining,
            )
            for chunk in stream:
                if not chunks:
                    spinner.stop()
                    print_info("Generated commit message:")
                chunks.append(chunk)
                print(chunk, end='', flush=True)
                if self._clock() > deadline:
                    raise GenerationTimeoutError("Deadline expired while streaming")
        except LLMError as e:
            if not chunks or isinstance(e, GenerationTimeoutError):
                raise
            raise StreamInterruptedError(f"Error receiving commit message stream: {e}") from e
        finally:
            spinner.stop()
            if chunks:
                print()

        message = ''.join(chunks)
        if not message.strip():
            raise EmptyResponseError(f"Empty commit message received from {model}")
        return message

    def _stream_with_fallback(self, diff: str) -> str:
        """Try the primary model, then the fallback once, inside one deadline."""
        deadline = self._clock() + self.config.request_timeout
        models = [self.config.model]
        if self.config.fallback_model and self.config.fallback_model != self.config.model:
            models.append(self.config.fallback_model)

        for attempt, model in enumerate(models):
            try:
                return self._stream_once(model, diff, deadline)
            except LLMError as e:
                is_last = attempt == len(models) - 1
                if is_last or isinstance(e, _NOT_RETRYABLE):
                    raise
                print_warning(f"{model} failed ({e}); retrying with {models[attempt + 1]}")

    def _generate_message(self, diff: str) -> str:
        prompt = build_prompt(self.config.prompt, diff)
        self._print_pre_generation_info(prompt)

        try:
            estimated = estimate_token_count(prompt)
            if estimated > self.config.max_tokens:
                raise TokenLimitError(estimated, self.config.max_tokens)
            message = self._stream_with_fallback(diff)
        except TokenLimitError as e:
            raise WorkflowError(
                f"Changes are too large for the configured 'max_tokens' ({e.limit}): "
                f"about {e.estimated} tokens. Consider committing smaller changes or increasing the limit"
            ) from e
        except GenerationTimeoutError as e:
            raise WorkflowError(
                f"Commit message generation timed out after {self.config.request_timeout_seconds}s"
            ) from e
        except AuthenticationError as e:
            raise WorkflowError(f"{e}. Check api_key (set via {self.provenance['api_key']})") from e
        except (RateLimitError, SafetyError) as e:
            raise WorkflowError(str(e)) from e
        except EmptyResponseError as e:
            raise WorkflowError(f"{e}. Try again or configure a different model") from e
        except LLMError as e:
            raise WorkflowError(f"Failed to generate commit message: {e}") from e

        return message.strip()

    # -- commit & push ----------------------------------------------------

    def _commit(self, message: str) -> None:
        try:
            self.git.commit(message)
        except GitError as e:
            raise WorkflowError(f"Failed to commit changes: {e}") from e
        print_success("Successfully committed changes.")

    def _wait_for_ssh_keys(self) -> None:
        try:
            available = self._ssh_key_check()
        except SSHAgentMissingError as e:
            print_info("Please install ssh-add or disable the wait_for_ssh_keys option.")
            raise WorkflowError(str(e)) from e
        except SSHCheckError as e:
            print_warning(f"Error checking SSH keys: {e}")
            print_info("Continuing with push operation...")
            return

        if available:
            return

        print_info(
            f"Waiting for SSH keys to become available ({self._enabled_via('wait_for_ssh_keys')})... "
            "Press Ctrl+C to cancel."
        )
        with Spinner("Checking for SSH keys"):
            while not available:
                self._sleep(SSH_POLL_INTERVAL)
                try:
                    available = self._ssh_key_check()
                except SSHAgentMissingError as e:
                    raise WorkflowError(str(e)) from e
                except SSHCheckError as e:
                    print_warning(f"Error checking SSH keys: {e}")
                    return
        print_success("SSH keys detected.")

    def _handle_push(self) -> WorkflowOutcome:
        try:
            has_remotes = self.pusher.has_remotes()
        except GitError as e:
            raise WorkflowError(f"Failed to check for remote repositories: {e}") from e

        if not has_remotes:
            print_info("No remote repositories configured. Push operation will be skipped.")
            return WorkflowOutcome.NO_REMOTES

        if self.config.auto_push:
            print_info(f"Auto-pushing changes ({self._enabled_via('auto_push')})...")
        elif not self._ask_yes_no(f"Would you like to push changes now? (using: {self.config.push_command})", True):
            return WorkflowOutcome.COMMITTED

        if self.config.wait_for_ssh_keys:
            self._wait_for_ssh_keys()

        try:
            with Spinner("Pushing changes"):
                result = self.pusher.execute_push(self.config.push_command)
        except GitError as e:
            raise WorkflowError(f"Failed to push changes: {e}") from e
        if not result.success:
            raise WorkflowError("Push command failed")

        print_success("Successfully pushed changes.")
        if result.repo_link:
            print_repo_link("View repository:", result.repo_link)
        return WorkflowOutcome.PUSHED
