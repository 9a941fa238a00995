# lc3_core_tracer/loader/loader.py
"""
イメージローダーモジュール。

LC-3のオブジェクトイメージ（ビッグエンディアンの16bitワード列。先頭ワードがロード先アドレス）を
解析し、状態値のメモリへ配置します。
"""
import io
from dataclasses import dataclass
from typing import BinaryIO, Iterable, List

from lc3_core_tracer.arch.lc3.state import Lc3CpuState, MEMORY_SIZE, WORD_MASK

# @intent:responsibility イメージの読み込みに失敗したことを表します。
class ImageLoadError(OSError):
    def __init__(self, path: str, reason: str):
        super().__init__(f"failed to load image: {path} ({reason})")
        self.path = path
        self.reason = reason

# @intent:data_structure ロードされたイメージの配置情報。
@dataclass(frozen=True)
class LoadedImage:
    origin: int
    length: int # 書き込んだワード数

    @property
    def end(self) -> int:
        """最後に書き込んだワードの次のアドレス（折り返さない）。"""
        return self.origin + self.length

class ImageLoader:
    """
    LC-3イメージファイルを解析し、データを状態値のメモリにロードするローダー。
    複数のイメージを順にロードでき、重なった領域は後からロードした内容で上書きされます。
    """
    # @intent:responsibility ファイルパスからイメージをロードします。
    # @intent:post-condition 開けない・読めない・空のファイルの場合はImageLoadErrorを発生させます。
    def load_image(self, path: str, state: Lc3CpuState) -> LoadedImage:
        try:
            with open(path, "rb") as f:
                return self.load_stream(f, state, name=str(path))
        except ImageLoadError:
            raise
        except OSError as e:
            raise ImageLoadError(str(path), e.strerror or str(e)) from e

    # @intent:responsibility 複数のイメージを指定順にロードします。
    def load_images(self, paths: Iterable[str], state: Lc3CpuState) -> List[LoadedImage]:
        return [self.load_image(path, state) for path in paths]

    # @intent:responsibility バイトストリームからイメージをロードします。
    def load_stream(self, stream: BinaryIO, state: Lc3CpuState, name: str = "<stream>") -> LoadedImage:
        """
        先頭ワードをロード先アドレスとし、以降のワードを連続して書き込みます。
        ストリームの終端、またはアドレス空間の末尾（0xFFFF）のいずれか早い方で停止します。
        末尾の端数バイトは無視します。
        """
        header = stream.read(2)
        if len(header) < 2:
            raise ImageLoadError(name, "missing origin word")
        origin = int.from_bytes(header, "big")

        max_words = MEMORY_SIZE - origin
        data = stream.read(max_words * 2)
        count = len(data) // 2
        memory = state.memory
        for i in range(count):
            memory[origin + i] = int.from_bytes(data[i * 2:i * 2 + 2], "big") & WORD_MASK
        return LoadedImage(origin=origin, length=count)

    # @intent:responsibility ワード列（先頭がロード先アドレス）からロードします。テストやツール向け。
    def load_words(self, words: Iterable[int], state: Lc3CpuState) -> LoadedImage:
        data = b"".join((w & WORD_MASK).to_bytes(2, "big") for w in words)
        return self.load_stream(io.BytesIO(data), state)
