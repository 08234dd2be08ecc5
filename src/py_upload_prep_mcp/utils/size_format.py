"""文件大小格式化。"""

KB = 1024
MB = 1024 * 1024


def format_file_size(size_bytes: int) -> str:
    """将字节数格式化为人类可读字符串，如 "1.5 MB"。

    小于 1 KB 显示字节数，小于 1 MB 显示一位小数的 KB，其余显示一位小数的 MB。
    """
    if size_bytes < KB:
        return f"{size_bytes} B"
    if size_bytes < MB:
        return f"{size_bytes / KB:.1f} KB"
    return f"{size_bytes / MB:.1f} MB"
