"""并发执行器模块。

提供通用的并发任务执行功能：任务带输入序号提交，结果按输入顺序重组。
"""

import logging
import pickle
from collections.abc import Callable, Sequence
from concurrent.futures import (
    Executor,
    ProcessPoolExecutor,
    ThreadPoolExecutor,
    as_completed,
)
from typing import Any, Generic, TypeVar

from ..config import get_config


logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


class ConcurrentExecutor(Generic[T, R]):
    """通用并发执行器

    单个任务一旦开始便执行到完成或失败，不支持中途取消。
    """

    def __init__(self, max_workers: int = 4, force_executor_type: str | None = None):
        """初始化并发执行器

        Args:
            max_workers: 最大并发数
            force_executor_type: 强制指定执行器类型 ('thread'/'process'/None为自动选择)
        """
        self.max_workers = max_workers
        self.force_executor_type = force_executor_type

    def execute_tasks(
        self,
        items: Sequence[T],
        task_function: Callable[[T], R],
        on_error: Callable[[T, Exception], R],
    ) -> list[R]:
        """执行并发任务

        Args:
            items: 任务输入列表
            task_function: 要执行的任务函数
            on_error: 任务抛出异常时生成替代结果的函数

        Returns:
            list: 与输入一一对应、顺序一致的结果列表
        """
        if not items:
            return []

        # 单个任务或单线程时直接顺序执行
        if self.max_workers <= 1 or len(items) == 1:
            return [self._run_inline(item, task_function, on_error) for item in items]

        results: list[R | None] = [None] * len(items)
        executor_class = self._choose_executor(items)

        # 进程池要求任务函数可序列化，否则所有任务都会失败
        if executor_class is ProcessPoolExecutor and not self._is_picklable(
            task_function
        ):
            logger.warning("任务函数无法序列化，改用线程池执行")
            executor_class = ThreadPoolExecutor

        with executor_class(max_workers=self.max_workers) as executor:
            # 提交任务阶段
            future_to_index = self._submit_tasks(
                executor, items, task_function, on_error, results
            )

            # 收集结果阶段
            self._collect_results(future_to_index, items, on_error, results)

        return results  # type: ignore[return-value]

    def _run_inline(
        self,
        item: T,
        task_function: Callable[[T], R],
        on_error: Callable[[T, Exception], R],
    ) -> R:
        try:
            return task_function(item)
        except Exception as e:
            return on_error(item, e)

    def _submit_tasks(
        self,
        executor: Executor,
        items: Sequence[T],
        task_function: Callable[[T], R],
        on_error: Callable[[T, Exception], R],
        results: list[R | None],
    ) -> dict[Any, int]:
        """提交任务到执行器，记录每个任务的输入序号"""
        future_to_index = {}

        for index, item in enumerate(items):
            try:
                future = executor.submit(task_function, item)
                future_to_index[future] = index
            except Exception as e:
                results[index] = on_error(item, e)

        return future_to_index

    def _collect_results(
        self,
        future_to_index: dict[Any, int],
        items: Sequence[T],
        on_error: Callable[[T, Exception], R],
        results: list[R | None],
    ) -> None:
        """收集任务执行结果，按输入序号写回"""
        for future in as_completed(future_to_index):
            index = future_to_index[future]

            try:
                results[index] = future.result()
                logger.debug(f"任务完成: #{index}")
            except Exception as e:
                results[index] = on_error(items[index], e)

    @staticmethod
    def _is_picklable(task_function: Callable[..., Any]) -> bool:
        """检查任务函数能否传递给子进程"""
        try:
            pickle.dumps(task_function)
        except (pickle.PicklingError, AttributeError, TypeError) as e:
            logger.debug(f"任务函数序列化失败: {e}")
            return False
        return True

    def _choose_executor(self, items: Sequence[T]) -> type[Executor]:
        """根据任务特征选择合适的执行器

        Args:
            items: 任务输入列表，带 byte_size 属性时参与平均大小计算

        Returns:
            执行器类 (ThreadPoolExecutor 或 ProcessPoolExecutor)
        """
        # 如果用户强制指定了执行器类型
        if self.force_executor_type == "thread":
            return ThreadPoolExecutor
        if self.force_executor_type == "process":
            return ProcessPoolExecutor

        task_count = len(items)
        total_size = sum(getattr(item, "byte_size", 0) for item in items)
        avg_size = total_size / task_count if task_count > 0 else 0

        executor_type = get_config().get_executor_type(task_count, avg_size)
        logger.debug(
            f"使用{executor_type}执行器: 任务数={task_count}, "
            f"平均大小={avg_size / 1024 / 1024:.1f}MB"
        )
        if executor_type == "process":
            return ProcessPoolExecutor
        return ThreadPoolExecutor
