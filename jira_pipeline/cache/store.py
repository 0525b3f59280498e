"""2계층 캐시 - 휘발(프로세스 수명) + 영속(JSON 문서)

- 휘발 계층: 단순 dict, 재시작하면 사라짐
- 영속 계층: 첫 접근 시 한 번만 디스크에서 로드, 이후에는 메모리 스냅샷이
  유일한 기준. 변경될 때마다 전체를 직렬화해 비동기로 덮어씀.
- 두 계층은 서로 독립된 네임스페이스
"""
import asyncio
import json
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Dict, Optional, Set

from jira_pipeline.core.config import settings
from jira_pipeline.core.exceptions import CachePersistenceException
from jira_pipeline.core.logging import logger

from .keys import CacheKey, make_key


class CacheStore:
    """2계층 캐시 저장소

    애플리케이션 루트에서 하나를 만들고 필요한 컴포넌트에 참조로 전달합니다.
    영속 계층 쓰기 실패와 JSON 직렬화 불가 값은 로그만 남기고 호출자에게
    전달하지 않습니다.

    Usage:
        cache = CacheStore(tmp_path / "prefs.json")
        cache.set(["user", "https://x.atlassian.net"], {"accountId": "1"}, persist=True)
        await cache.flush()
    """

    def __init__(self, persist_path: Optional[Path] = None):
        """
        Args:
            persist_path: 영속 문서 경로 (없으면 settings.persist_path)
        """
        self.persist_path = Path(persist_path) if persist_path else settings.persist_path
        self._memory: Dict[str, Any] = {}
        self._persisted: Optional[Dict[str, Any]] = None
        self._state_lock = threading.Lock()
        self._write_lock: Optional[asyncio.Lock] = None
        self._write_lock_loop: Optional[asyncio.AbstractEventLoop] = None
        self._pending: Set["asyncio.Task[None]"] = set()

    def get(self, key: CacheKey, persist: bool = False) -> Optional[Any]:
        """캐시 조회

        Args:
            key: 캐시 키 (문자열 또는 세그먼트 시퀀스)
            persist: True 면 영속 계층

        Returns:
            저장된 값 또는 None
        """
        k = make_key(key)
        if persist:
            with self._state_lock:
                return self._load_persisted().get(k)
        return self._memory.get(k)

    def set(self, key: CacheKey, value: Any, persist: bool = False) -> None:
        """캐시 저장 (무조건 덮어쓰기)"""
        k = make_key(key)
        if not persist:
            self._memory[k] = value
            return

        # 직렬화 불가 값은 영속 계층에 넣지 않음
        try:
            json.dumps(value, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            error = CachePersistenceException(str(self.persist_path), f"key '{k}' is not JSON serializable: {e}")
            logger.warning(str(error))
            return

        with self._state_lock:
            self._load_persisted()[k] = value
            content = self._serialize()
        self._schedule_flush(content)

    def clear(self, key: Optional[CacheKey] = None, persist: bool = False) -> None:
        """캐시 삭제

        Args:
            key: 지정하면 해당 항목만, 없으면 계층 전체 삭제
            persist: True 면 영속 계층
        """
        if not persist:
            if key is None:
                self._memory = {}
            else:
                self._memory.pop(make_key(key), None)
            return

        with self._state_lock:
            data = self._load_persisted()
            if key is None:
                self._persisted = {}
            else:
                data.pop(make_key(key), None)
            content = self._serialize()
        self._schedule_flush(content)

    async def flush(self) -> None:
        """대기 중인 영속 쓰기가 모두 끝날 때까지 대기"""
        while self._pending:
            await asyncio.gather(*list(self._pending))

    def _load_persisted(self) -> Dict[str, Any]:
        """영속 스냅샷 지연 로드 (프로세스 수명 동안 한 번)"""
        if self._persisted is not None:
            return self._persisted

        try:
            text = self.persist_path.read_text(encoding="utf-8")
            data = json.loads(text)
            if not isinstance(data, dict):
                logger.warning(f"[Cache] Persisted document is not an object: {self.persist_path}")
                data = {}
        except FileNotFoundError:
            data = {}
        except (OSError, ValueError) as e:
            logger.warning(f"[Cache] Failed to load {self.persist_path}: {type(e).__name__}: {e}")
            data = {}

        self._persisted = data
        return self._persisted

    def _serialize(self) -> str:
        return json.dumps(self._persisted or {}, ensure_ascii=False)

    def _schedule_flush(self, content: str) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # 이벤트 루프 밖에서는 동기 쓰기
            self._write_safely(content)
            return

        task = loop.create_task(self._write_async(content))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _write_async(self, content: str) -> None:
        # Lock 은 FIFO 이므로 변경 순서대로 기록된다
        async with self._get_write_lock():
            await asyncio.to_thread(self._write_safely, content)

    def _get_write_lock(self) -> asyncio.Lock:
        loop = asyncio.get_running_loop()
        if self._write_lock is None or self._write_lock_loop is not loop:
            self._write_lock = asyncio.Lock()
            self._write_lock_loop = loop
        return self._write_lock

    def _write_safely(self, content: str) -> None:
        try:
            self._write(content)
        except OSError as e:
            error = CachePersistenceException(str(self.persist_path), f"{type(e).__name__}: {e}")
            logger.warning(str(error))

    def _write(self, content: str) -> None:
        """디렉터리 보장 후 원자적으로 문서 교체 (임시 파일 + rename)"""
        directory = self.persist_path.parent
        directory.mkdir(parents=True, exist_ok=True)

        fd, tmp_path = tempfile.mkstemp(dir=directory, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
            Path(tmp_path).replace(self.persist_path)
        except BaseException:
            Path(tmp_path).unlink(missing_ok=True)
            raise

    def __repr__(self) -> str:
        loaded = self._persisted is not None
        return (
            f"CacheStore(persist_path={str(self.persist_path)!r}, "
            f"entries={len(self._memory)}, persisted_loaded={loaded})"
        )
