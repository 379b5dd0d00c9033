import pytest
from src.hack_vm.translator import main, collect_sources, default_output, translate_path
from src.hack_vm.assembler import main as asm_main
from src.hack_vm.emulator import Emulator
from src.hack_vm.utils import from_bin16

SIMPLE_ADD = "// suma\npush constant 7\npush constant 8\nadd\n"

def test_single_file_without_bootstrap(tmp_path, capsys):
    src = tmp_path / "SimpleAdd.vm"
    src.write_text(SIMPLE_ADD, encoding="utf-8")
    assert main([str(src)]) == 0
    out = tmp_path / "SimpleAdd.asm"
    lines = out.read_text(encoding="utf-8").splitlines()
    assert lines[0] == "@7"
    assert "@Sys.init" not in lines
    assert "OK:" in capsys.readouterr().out

def test_directory_gets_bootstrap_and_sorted_units(tmp_path):
    prog = tmp_path / "Prog"
    prog.mkdir()
    (prog / "Sys.vm").write_text("function Sys.init 0\nlabel END\ngoto END\n", encoding="utf-8")
    (prog / "Main.vm").write_text("function Main.main 0\npush static 1\nreturn\n", encoding="utf-8")
    (prog / "notes.txt").write_text("ignored", encoding="utf-8")
    assert [p.name for p in collect_sources(prog)] == ["Main.vm", "Sys.vm"]
    assert default_output(prog) == prog / "Prog.asm"

    assert main([str(prog)]) == 0
    lines = (prog / "Prog.asm").read_text(encoding="utf-8").splitlines()
    assert lines[:6] == ["@261", "D=A", "@SP", "M=D", "@Sys.init", "0;JMP"]
    assert "@Main.1" in lines
    assert lines.index("(Main.main)") < lines.index("(Sys.init)")

def test_bootstrap_flags_override_default(tmp_path):
    src = tmp_path / "A.vm"
    src.write_text(SIMPLE_ADD, encoding="utf-8")
    out = tmp_path / "custom.asm"
    assert main([str(src), "-o", str(out), "--bootstrap", "--annotate"]) == 0
    lines = out.read_text(encoding="utf-8").splitlines()
    assert lines[0] == "@261"
    assert "// push constant 7" in lines

def test_translation_error_exit_code_and_no_partial_output(tmp_path, capsys):
    src = tmp_path / "Bad.vm"
    src.write_text("push constant 1\npop constant 0\n", encoding="utf-8")
    assert main([str(src)]) == 1
    err = capsys.readouterr().err
    assert "Bad:2:" in err
    assert not (tmp_path / "Bad.asm").exists()

def test_non_vm_file_is_rejected_and_left_intact(tmp_path, capsys):
    src = tmp_path / "prog.asm"
    src.write_text("@7\nD=A\n", encoding="utf-8")
    assert main([str(src)]) == 1
    assert ".vm" in capsys.readouterr().err
    assert src.read_text(encoding="utf-8") == "@7\nD=A\n"

def test_output_cannot_overwrite_a_source(tmp_path):
    prog = tmp_path / "Prog"
    prog.mkdir()
    src = prog / "Main.vm"
    src.write_text(SIMPLE_ADD, encoding="utf-8")
    assert main([str(src), "-o", str(src)]) == 1
    assert main([str(prog), "-o", str(prog / "." / "Main.vm")]) == 1
    assert src.read_text(encoding="utf-8") == SIMPLE_ADD

@pytest.mark.parametrize("name", ["my-prog.vm", "1Main.vm"])
def test_unit_name_must_be_a_vm_identifier(tmp_path, capsys, name):
    src = tmp_path / name
    src.write_text("push constant 1\npop static 0\nlabel L\n", encoding="utf-8")
    assert main([str(src)]) == 1
    assert "Nombre de unidad inválido" in capsys.readouterr().err
    assert not src.with_suffix(".asm").exists()

def test_missing_input(tmp_path, capsys):
    assert main([str(tmp_path / "nope.vm")]) == 2
    assert "ERROR" in capsys.readouterr().err

def test_unwritable_output(tmp_path):
    src = tmp_path / "A.vm"
    src.write_text(SIMPLE_ADD, encoding="utf-8")
    assert main([str(src), "-o", str(tmp_path / "missing" / "A.asm")]) == 3

def test_empty_directory_is_an_error(tmp_path):
    empty = tmp_path / "Empty"
    empty.mkdir()
    assert main([str(empty)]) == 1

def test_e2e_vm_to_hack(tmp_path):
    src = tmp_path / "SimpleAdd.vm"
    src.write_text(SIMPLE_ADD, encoding="utf-8")
    asm = translate_path(src)
    hack = tmp_path / "SimpleAdd.hack"
    assert asm_main([str(asm), str(hack)]) == 0
    lines = hack.read_text(encoding="utf-8").splitlines()
    assert from_bin16(lines[0]) == 7  # @7
    emu = Emulator.from_hack(lines)
    emu.poke("SP", 256)
    emu.run()
    assert emu.stack() == [15]

def test_assembler_reports_errors(tmp_path, capsys):
    asm = tmp_path / "bad.asm"
    asm.write_text("@1\nD=D*A\n", encoding="utf-8")
    assert asm_main([str(asm), str(tmp_path / "bad.hack")]) == 1
    assert "Campo comp desconocido" in capsys.readouterr().err
    assert asm_main([str(tmp_path / "none.asm"), str(tmp_path / "x.hack")]) == 2
