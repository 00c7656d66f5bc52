from flex2treetop.compiler.treetop.treetop_compiler import TreetopCompiler
from flex2treetop.compiler.compiled_grammar import CompiledGrammar
from flex2treetop.compiler.context import EmissionContext, TranslationSettings
from flex2treetop.compiler.emitter import BlockKind, BufferedSink, Emitter, Sink, StreamingSink

__all__ = [
    "TreetopCompiler",
    "CompiledGrammar",
    "EmissionContext",
    "TranslationSettings",
    "BlockKind",
    "BufferedSink",
    "Emitter",
    "Sink",
    "StreamingSink",
]
