"""批量预处理模块。

逐个判定候选文件是否需要处理：小文件直接透传，图像交给转码器，
PDF 只做大小检查，其他类型原样透传。输出与输入一一对应且顺序不变。
"""

from collections.abc import Sequence

from ..config import get_config
from ..core.codec import ImageCodec
from ..core.transcoder import ImageTranscoder
from ..exceptions import ErrorHandler, PreprocessError, ValidationError
from ..models.constants import MediaTypes, normalize_media_type
from ..models.policy import PreprocessPolicy
from ..models.preprocess_result import BatchReport, FileOutcome, PreprocessAction
from ..models.upload_file import FileCandidate, ProcessedFile
from ..utils.logging_helpers import get_logger
from ..utils.message_formatter import MessageFormatter
from .concurrent_executor import ConcurrentExecutor


logger = get_logger()


class UploadPreprocessor:
    """上传预处理器

    单个文件处理失败时记录日志并输出原文件，不会丢弃文件，也不会中断整批处理。
    """

    def __init__(
        self,
        policy: PreprocessPolicy | None = None,
        codec: ImageCodec | None = None,
        max_workers: int | None = None,
        force_executor_type: str | None = None,
        transcoder: ImageTranscoder | None = None,
    ):
        """初始化预处理器

        Args:
            policy: 预处理策略，默认使用内置阈值
            codec: 图像编解码器，默认使用 PillowCodec
            max_workers: 最大并发数，默认读取全局配置
            force_executor_type: 强制指定执行器类型 ('thread'/'process'/None为自动选择)
            transcoder: 自定义转码器（提供时忽略 codec）
        """
        processing = get_config().processing
        max_workers = max_workers if max_workers is not None else processing.MAX_WORKERS
        force_executor_type = force_executor_type or processing.EXECUTOR_TYPE

        if max_workers <= 0:
            raise ValidationError(
                MessageFormatter.validation_error("max_workers", max_workers, "必须大于 0")
            )
        if force_executor_type not in (None, "thread", "process"):
            raise ValidationError(
                MessageFormatter.validation_error(
                    "force_executor_type",
                    force_executor_type,
                    "必须是 'thread', 'process' 或 None",
                )
            )

        self.policy = policy or PreprocessPolicy()
        self.transcoder = transcoder or ImageTranscoder(codec=codec, policy=self.policy)
        self.concurrent_executor: ConcurrentExecutor[FileCandidate, FileOutcome] = (
            ConcurrentExecutor(max_workers, force_executor_type)
        )

    def process(self, candidates: Sequence[FileCandidate]) -> list[ProcessedFile]:
        """预处理候选文件列表

        Args:
            candidates: 候选文件列表

        Returns:
            list[ProcessedFile]: 可上传的文件列表，与输入一一对应
        """
        return self.process_with_report(candidates).files

    def process_with_report(self, candidates: Sequence[FileCandidate]) -> BatchReport:
        """预处理候选文件列表，并返回每个文件的处理详情"""
        outcomes = self.concurrent_executor.execute_tasks(
            items=list(candidates),
            task_function=self.process_one,
            on_error=self._handle_task_error,
        )
        report = BatchReport(outcomes=outcomes)
        logger.debug(report.get_summary())
        return report

    def process_one(self, candidate: FileCandidate) -> FileOutcome:
        """预处理单个候选文件"""
        # 小文件直接透传，不尝试解码
        if candidate.byte_size < self.policy.small_file_bypass:
            return self._pass_through(candidate, PreprocessAction.SMALL_FILE_BYPASS)

        media_type = normalize_media_type(candidate.media_type)

        if media_type.startswith(MediaTypes.IMAGE_PREFIX):
            return self._process_image(candidate)

        if media_type == MediaTypes.PDF:
            return self._check_pdf(candidate)

        return self._pass_through(candidate, PreprocessAction.PASS_THROUGH)

    def _process_image(self, candidate: FileCandidate) -> FileOutcome:
        """转码图像，失败时回退到原文件"""
        try:
            outcome = self.transcoder.transcode_detailed(
                candidate.data,
                candidate.media_type,
                candidate.byte_size,
                candidate.name,
            )
        except PreprocessError as e:
            return ErrorHandler.handle_preprocess_error(e, candidate)

        plan = outcome.plan
        return FileOutcome(
            file=outcome.file,
            action=(
                PreprocessAction.SHORT_CIRCUIT
                if outcome.short_circuited
                else PreprocessAction.TRANSCODED
            ),
            original_size=candidate.byte_size,
            original_media_type=candidate.media_type,
            original_dimensions=plan.original_dimensions.as_tuple(),
            final_dimensions=plan.target_dimensions.as_tuple(),
            quality_used=plan.decision.quality if plan.decision else None,
        )

    def _check_pdf(self, candidate: FileCandidate) -> FileOutcome:
        """PDF 只检查大小，超出上限时给出警告后原样透传"""
        if candidate.byte_size > self.policy.max_file_size:
            logger.warning(
                MessageFormatter.pdf_too_large(candidate.name, candidate.byte_size)
            )
            return self._pass_through(candidate, PreprocessAction.OVERSIZED_PDF)
        return self._pass_through(candidate, PreprocessAction.PASS_THROUGH)

    def _pass_through(
        self, candidate: FileCandidate, action: PreprocessAction
    ) -> FileOutcome:
        return FileOutcome(
            file=ProcessedFile.from_candidate(candidate),
            action=action,
            original_size=candidate.byte_size,
            original_media_type=candidate.media_type,
        )

    def _handle_task_error(
        self, candidate: FileCandidate, error: Exception
    ) -> FileOutcome:
        """任务执行中出现意外异常时回退到原文件"""
        return ErrorHandler.handle_with_context(
            error, candidate, "并发任务处理", log_level="error"
        )


def preprocess_uploads(
    candidates: Sequence[FileCandidate],
    policy: PreprocessPolicy | None = None,
    **kwargs,
) -> list[ProcessedFile]:
    """便捷函数：使用默认编解码器预处理候选文件列表"""
    return UploadPreprocessor(policy=policy, **kwargs).process(candidates)
