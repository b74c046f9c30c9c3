# Services package
from .classifier import ContentClassifier, ContentClassifying
from .deduplication import ChannelNormalizer, ChannelNormalizing, DeduplicationKey, DeduplicationStatistics, Strategy
from .item_stream import ItemStream
from .lexer import M3ULexer
from .m3u_parser import M3UParser
from .quality_analyzer import QualityAnalyzer, QualityAnalyzing
from .title_normalizer import TitleNormalizer, TitleNormalizing
