"""Tests for the buffered async item stream."""
import asyncio

import httpx
import pytest

from m3ukit.config import ParserConfig
from m3ukit.errors import InvalidFormatError, NetworkError, PlaylistNotFoundError, StreamInterruptedError
from m3ukit.models.content_type import series
from m3ukit.services import ContentClassifier, ItemStream, M3UParser

SAMPLE = (
    "#EXTM3U\n"
    '#EXTINF:-1 tvg-id="bbc1.uk" group-title="UK",BBC One HD\n'
    "http://example.com/live/bbc1.ts\n"
    '#EXTINF:-1 group-title="Movies",The Matrix (1999)\n'
    "http://example.com/movie/matrix.mp4\n"
    "#EXTINF:-1,Orphan\n"
    "#EXTGRP:Dizi\n"
    "#EXTINF:-1,Breaking Bad S01E02\n"
    "http://example.com/series/bb-s01e02.mkv\n"
)


def numbered_playlist(count):
    lines = ["#EXTM3U"]
    for i in range(1, count + 1):
        lines.append(f"#EXTINF:-1,Channel {i}")
        lines.append(f"http://example.com/{i}")
    return "\n".join(lines).encode("utf-8")


def without_id(item):
    data = item.to_dict()
    del data["id"]
    return data


async def collect(stream):
    return [item async for item in stream]


@pytest.fixture
def parser():
    return M3UParser()


class TestStreamEqualsParse:
    """Streaming yields the same items as the whole-document parse"""

    def test_bytes(self, parser):
        streamed = asyncio.run(collect(parser.stream_from_bytes(SAMPLE.encode("utf-8"))))
        parsed = parser.parse(SAMPLE)

        assert [without_id(item) for item in streamed] == [without_id(item) for item in parsed]

    def test_file_with_small_chunks(self, tmp_path):
        path = tmp_path / "list.m3u"
        path.write_bytes(SAMPLE.replace("\n", "\r\n").encode("utf-8"))
        parser = M3UParser(config=ParserConfig(chunk_size=7))

        streamed = asyncio.run(collect(parser.stream_from_file(str(path))))

        assert [item.name for item in streamed] == ["BBC One HD", "The Matrix (1999)", "Breaking Bad S01E02"]
        assert streamed[0].url == "http://example.com/live/bbc1.ts"
        assert streamed[2].group == "Dizi"

    def test_cr_only_line_endings(self):
        parser = M3UParser(config=ParserConfig(chunk_size=5))
        data = SAMPLE.replace("\n", "\r").encode("utf-8")

        streamed = asyncio.run(collect(parser.stream_from_bytes(data)))

        assert len(streamed) == 3

    def test_multibyte_split_across_chunks(self):
        parser = M3UParser(config=ParserConfig(chunk_size=3))
        data = "#EXTM3U\n#EXTINF:-1,Çağrı Şişli\nhttp://x/a\n".encode("utf-8")

        streamed = asyncio.run(collect(parser.stream_from_bytes(data)))

        assert streamed[0].name == "Çağrı Şişli"

    def test_mixed_encodings(self, parser):
        data = (
            "#EXTM3U\n#EXTINF:-1,Kurtlar Vadisi Sezon 1 Bölüm 5\nhttp://x/a\n".encode("utf-8")
            + b"#EXTINF:-1,Caf\xe9\nhttp://x/b\n"
        )

        streamed = asyncio.run(collect(parser.stream_from_bytes(data)))
        parsed = parser.parse_bytes(data)

        assert [without_id(item) for item in streamed] == [without_id(item) for item in parsed]
        assert [item.name for item in parsed] == ["Kurtlar Vadisi Sezon 1 Bölüm 5", "Café"]
        assert parsed.items[0].content_type == series(1, 5)

    def test_byte_order_mark_inside_document(self, parser):
        data = b"#EXTM3U\n" + "\ufeff#EXTINF:-1,A\nhttp://x/a\n".encode("utf-8")

        streamed = asyncio.run(collect(parser.stream_from_bytes(data)))
        parsed = parser.parse_bytes(data)

        assert [item.name for item in streamed] == [item.name for item in parsed] == ["A"]


class TestErrors:
    """Failures surface at the end of the stream"""

    def test_missing_file_raises_eagerly(self, parser, tmp_path):
        with pytest.raises(PlaylistNotFoundError):
            parser.stream_from_file(str(tmp_path / "missing.m3u"))

    def test_missing_header_raises_after_items(self, parser):
        received = []

        async def consume():
            async for item in parser.stream_from_bytes(b"#EXTINF:-1,A\nhttp://x/a\n"):
                received.append(item)

        with pytest.raises(InvalidFormatError):
            asyncio.run(consume())
        assert [item.name for item in received] == ["A"]

    def test_empty_source(self, parser):
        assert asyncio.run(collect(parser.stream_from_bytes(b""))) == []

    def test_interrupted_source(self):
        received = []

        async def lines():
            yield "#EXTM3U"
            yield "#EXTINF:-1,A"
            yield "http://x/a"
            raise OSError("connection reset")

        async def consume():
            async for item in ItemStream(lines(), ContentClassifier()):
                received.append(item)

        with pytest.raises(StreamInterruptedError) as exc_info:
            asyncio.run(consume())
        assert [item.name for item in received] == ["A"]
        assert isinstance(exc_info.value.__cause__, OSError)

    def test_unexpected_source_error_is_not_silent(self):
        received = []

        async def lines():
            yield "#EXTM3U"
            yield "#EXTINF:-1,A"
            yield "http://x/a"
            raise RuntimeError("reader bug")

        async def consume():
            async for item in ItemStream(lines(), ContentClassifier()):
                received.append(item)

        with pytest.raises(StreamInterruptedError) as exc_info:
            asyncio.run(consume())
        assert [item.name for item in received] == ["A"]
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    def test_failing_classifier(self):
        class Broken:
            def classify(self, name, group, attributes):
                raise ValueError("cannot classify")

        parser = M3UParser(classifier=Broken())
        with pytest.raises(StreamInterruptedError) as exc_info:
            asyncio.run(collect(parser.stream_from_bytes(b"#EXTM3U\n#EXTINF:-1,A\nhttp://x/a\n")))
        assert isinstance(exc_info.value.__cause__, ValueError)

    def test_invalid_buffer_size(self):
        async def lines():
            yield "#EXTM3U"

        with pytest.raises(ValueError):
            ItemStream(lines(), ContentClassifier(), buffer_size=0)


class TestBuffering:
    """Bounded keep-newest buffer"""

    def test_slow_consumer_loses_oldest(self):
        parser = M3UParser(config=ParserConfig(stream_buffer_size=2))

        async def consume():
            stream = parser.stream_from_bytes(numbered_playlist(10))
            received = [await stream.__anext__()]
            # Let the producer run to the end while nothing is consumed
            while not stream.closed:
                await asyncio.sleep(0)
            received.extend([item async for item in stream])
            return stream, received

        stream, received = asyncio.run(consume())

        assert [item.name for item in received] == ["Channel 1", "Channel 9", "Channel 10"]
        assert stream.dropped_count == 7
        assert len(received) + stream.dropped_count == 10

    def test_fast_consumer_loses_nothing(self):
        parser = M3UParser(config=ParserConfig(stream_buffer_size=1))

        async def consume():
            stream = parser.stream_from_bytes(numbered_playlist(20))
            items = await collect(stream)
            return stream, items

        stream, items = asyncio.run(consume())

        assert len(items) == 20
        assert stream.dropped_count == 0

    def test_early_exit_releases_source(self, parser):
        async def consume():
            async with parser.stream_from_bytes(numbered_playlist(100)) as stream:
                async for item in stream:
                    first = item
                    break
            return stream, first

        stream, first = asyncio.run(consume())

        assert first.name == "Channel 1"
        assert stream.closed
        assert stream.lines_read < 200

    def test_break_then_aclose_releases_source(self, parser):
        async def consume():
            stream = parser.stream_from_bytes(numbered_playlist(100))
            async for item in stream:
                break
            await stream.aclose()
            return stream

        stream = asyncio.run(consume())

        assert stream.closed
        assert stream.lines_read < 200

    def test_aclose_before_iteration(self, parser):
        async def consume():
            stream = parser.stream_from_bytes(numbered_playlist(3))
            await stream.aclose()
            return await collect(stream)

        assert asyncio.run(consume()) == []


class TestUrlStream:
    """Streaming from HTTP"""

    def test_stream_from_url(self):
        def handler(request):
            return httpx.Response(200, content=SAMPLE.encode("utf-8"))

        parser = M3UParser(config=ParserConfig(chunk_size=16), transport=httpx.MockTransport(handler))
        streamed = asyncio.run(collect(parser.stream_from_url("http://example.com/list.m3u")))

        assert [item.name for item in streamed] == ["BBC One HD", "The Matrix (1999)", "Breaking Bad S01E02"]

    def test_http_error_before_any_line(self):
        def handler(request):
            return httpx.Response(404)

        parser = M3UParser(transport=httpx.MockTransport(handler))
        with pytest.raises(NetworkError):
            asyncio.run(collect(parser.stream_from_url("http://example.com/list.m3u")))

    def test_invalid_url(self, parser):
        with pytest.raises(ValueError):
            parser.stream_from_url("file:///etc/list.m3u")
