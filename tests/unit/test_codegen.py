import pytest
from src.hack_vm.codegen import CodeWriter, ListSink
from src.hack_vm.commands import ArithmeticOp, Command, CommandKind, Segment
from src.hack_vm.diagnostics import InvalidSegment, IOFailure, MalformedCommand, TranslationError
from src.hack_vm.parser import parse
from src.hack_vm.assembler import assemble_text
from src.hack_vm.translator import translate_text, translate_many

def _writer(unit="Main"):
    w = CodeWriter(ListSink())
    w.set_file_name(unit)
    return w

def test_bootstrap_skips_call_protocol():
    w = CodeWriter(ListSink())
    w.write_init()
    assert w.out.lines == ["@261", "D=A", "@SP", "M=D", "@Sys.init", "0;JMP"]

def test_push_constant_sequence():
    assert translate_text("push constant 17") == ["@17", "D=A", "@SP", "A=M", "M=D", "@SP", "M=M+1"]

def test_static_symbols_use_unit_name():
    lines = translate_text("push static 3\npop static 4", unit="Foo")
    assert "@Foo.3" in lines and "@Foo.4" in lines

def test_pop_indirect_uses_scratch_register():
    lines = translate_text("pop that 6")
    assert lines == [
        "@THAT", "D=M", "@6", "D=D+A", "@R14", "M=D",
        "@SP", "AM=M-1", "D=M", "@R14", "A=M", "M=D",
    ]

@pytest.mark.parametrize("src, addr", [
    ("pop temp 7", "@12"),
    ("pop pointer 1", "@4"),
    ("push temp 0", "@5"),
    ("push pointer 0", "@3"),
])
def test_direct_segments(src, addr):
    assert addr in translate_text(src)

def test_labels_are_function_scoped():
    src = """
    function F 0
    label LOOP
    goto LOOP
    function G 0
    label LOOP
    if-goto LOOP
    """
    lines = translate_text(src)
    assert "(F$LOOP)" in lines and "@F$LOOP" in lines
    assert "(G$LOOP)" in lines and "@G$LOOP" in lines

def test_labels_before_any_function_use_unit_scope():
    lines = translate_text("label TOP\ngoto TOP", unit="Foo")
    assert lines[0] == "(Foo$$TOP)"
    w = CodeWriter(ListSink())
    w.write_label("TOP")
    assert w.out.lines == ["(TOP)"]

def test_new_unit_resets_function_scope():
    w = _writer("A")
    w.write_function("A.f", 0)
    w.set_file_name("B")
    w.write_label("X")
    assert w.out.lines[-1] == "(B$$X)"

def test_unique_labels_never_repeat_across_units():
    lines = translate_many([
        ("A", "push constant 1\npush constant 2\neq\ncall A.f 0"),
        ("B", "push constant 1\npush constant 2\nlt\ncall B.f 0"),
    ], bootstrap=False)
    defs = [l for l in lines if l.startswith("($")]
    assert len(defs) == 6
    assert len(set(defs)) == 6

def test_comparison_allocates_two_labels():
    w = _writer()
    w.write_arithmetic(ArithmeticOp.GT)
    assert w.label_counter == 2
    assert "D;JGT" in w.out.lines

def test_call_computes_arg_from_nargs_plus_five():
    lines = translate_text("call Main.f 2")
    i = lines.index("@7")
    assert lines[i - 2:i + 4] == ["@SP", "D=M", "@7", "D=D-A", "@ARG", "M=D"]
    assert lines[-3:] == ["@Main.f", "0;JMP", "($RET.1)"]
    assert lines[0] == "@$RET.1"

def test_function_initializes_locals():
    lines = translate_text("function Main.g 3")
    assert lines[0] == "(Main.g)"
    assert lines.count("@0") == 3

def test_return_restores_in_order():
    lines = translate_text("function Main.h 0\nreturn")
    restores = [lines[i + 3] for i, l in enumerate(lines) if l == "@R15" and lines[i + 1] == "AM=M-1"]
    assert restores == ["@THAT", "@THIS", "@ARG", "@LCL"]
    assert lines[-3:] == ["@R13", "A=M", "0;JMP"]

@pytest.mark.parametrize("kind, seg, idx", [
    (CommandKind.POP, Segment.CONSTANT, 0),
    (CommandKind.PUSH, Segment.TEMP, 8),
    (CommandKind.POP, Segment.POINTER, 2),
    (CommandKind.PUSH, Segment.CONSTANT, 32768),
    (CommandKind.PUSH, Segment.LOCAL, 32768),
    (CommandKind.POP, Segment.THAT, 40000),
    (CommandKind.PUSH, "heap", 0),
])
def test_invalid_segments(kind, seg, idx):
    w = _writer()
    with pytest.raises(InvalidSegment):
        w.write_push_pop(kind, seg, idx)

def test_indirect_index_limit_still_assembles():
    lines = translate_text("push local 32767\npop argument 32767")
    assert "@32767" in lines
    assert not [d for d in assemble_text("\n".join(lines))[1] if d.severity == "error"]

def test_call_with_too_many_args():
    w = _writer()
    with pytest.raises(MalformedCommand):
        w.write_call("Main.f", 32763)
    assert w.out.lines == []
    w.write_call("Main.f", 32762)
    assert "@32767" in w.out.lines

def test_unit_and_function_with_same_name_do_not_collide():
    lines = translate_text("label X\nfunction Main 0\nlabel X", unit="Main")
    assert "(Main$$X)" in lines and "(Main$X)" in lines
    assert not [d for d in assemble_text("\n".join(lines))[1] if d.severity == "error"]

@pytest.mark.parametrize("name", ["my-prog", "1Main", "", "a b"])
def test_unit_name_must_be_an_identifier(name):
    w = CodeWriter(ListSink())
    with pytest.raises(MalformedCommand) as ei:
        w.set_file_name(name)
    assert ei.value.diagnostic.file == name
    assert w.file_name is None

def test_dispatch_errors_carry_unit_and_line():
    w = _writer("Foo")
    cmd = parse("\n\npop constant 1")[0]
    with pytest.raises(InvalidSegment) as ei:
        w.dispatch(cmd)
    assert ei.value.diagnostic.file == "Foo"
    assert ei.value.diagnostic.line == 3

def test_static_without_unit_fails_fast():
    w = CodeWriter(ListSink())
    with pytest.raises(TranslationError):
        w.write_push_pop(CommandKind.PUSH, Segment.STATIC, 0)

def test_annotate_emits_vm_text_as_comment():
    lines = translate_text("push constant 7 // siete\nadd", annotate=True)
    assert lines[0] == "// push constant 7"
    assert "// add" in lines

class _BrokenSink:
    def write(self, s):
        raise OSError("disk full")

    def close(self):
        raise OSError("cannot close")

def test_io_failures():
    w = CodeWriter(_BrokenSink())
    with pytest.raises(IOFailure):
        w.dispatch(Command(CommandKind.RETURN))
    with pytest.raises(IOFailure):
        w.close()

def test_annotation_failure_carries_unit_and_line():
    w = CodeWriter(_BrokenSink(), annotate=True)
    w.set_file_name("Foo")
    cmd = parse("\nadd")[0]
    with pytest.raises(IOFailure) as ei:
        w.dispatch(cmd)
    assert ei.value.diagnostic.file == "Foo"
    assert ei.value.diagnostic.line == 2

def test_close_is_idempotent():
    sink = ListSink()
    w = CodeWriter(sink)
    w.close()
    w.close()
    assert sink.closed
