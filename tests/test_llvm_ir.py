"""Tests for sigbind.llvm_ir: reading clang output and writing declarations."""

import pytest

from sigbind.errors import ModuleParseError
from sigbind.llvm_ir import (
    IRFunction,
    IRModule,
    declaration_header,
    parse_module,
    verify_text,
)

CLANG_OUTPUT = """\
; ModuleID = '-'
source_filename = "-"
target datalayout = "e-m:e-p:32:32-p270:32:32-p271:32:32-p272:64:64-i128:128-f64:32:64-f80:32-n8:16:32-S128"
target triple = "i386-pc-linux-gnu"

%struct.HINSTANCE__ = type { i32 }
%struct._RTL_CRITICAL_SECTION = type { ptr, i32, i32, ptr, ptr, i32 }
%struct.opaque_t = type opaque

@g_counter = dso_local global i32 0, align 4

; Function Attrs: noinline nounwind optnone
define dso_local x86_stdcallcc i32 @WinMain(ptr noundef %0, ptr noundef %1, ptr noundef %2, i32 noundef %3) #0 {
  %5 = alloca ptr, align 4
  store ptr %0, ptr %5, align 4
  ret i32 0
}

; Function Attrs: noinline nounwind optnone
define internal void @helper() #0 {
entry:
  ret void
}

declare dso_local void @ExitProcess(i32 noundef) #1

declare dso_local i32 @printf(ptr noundef, ...) #1

declare void @"\\01??1type_info@@UAE@XZ"(ptr)

attributes #0 = { noinline nounwind optnone "frame-pointer"="all" }
attributes #1 = { "frame-pointer"="all" }

!llvm.module.flags = !{!0}
!0 = !{i32 1, !"NumRegisterParameters", i32 0}
"""


class TestParseModule:
    def test_header_fields(self) -> None:
        module = parse_module(CLANG_OUTPUT)
        assert module.triple == "i386-pc-linux-gnu"
        assert module.data_layout.startswith("e-m:e-p:32:32")

    def test_type_defs_verbatim(self) -> None:
        module = parse_module(CLANG_OUTPUT)
        assert module.type_defs == [
            "%struct.HINSTANCE__ = type { i32 }",
            "%struct._RTL_CRITICAL_SECTION = type { ptr, i32, i32, ptr, ptr, i32 }",
            "%struct.opaque_t = type opaque",
        ]

    def test_function_names_in_order(self) -> None:
        module = parse_module(CLANG_OUTPUT)
        assert [f.name for f in module.funcs] == [
            "WinMain",
            "helper",
            "ExitProcess",
            "printf",
            "\x01??1type_info@@UAE@XZ",
        ]

    def test_definitions_and_declarations(self) -> None:
        module = parse_module(CLANG_OUTPUT)
        winmain, helper, exit_process = module.funcs[:3]
        assert not winmain.is_declaration
        assert winmain.blocks[-1] == "  ret i32 0"
        assert helper.blocks == ["entry:", "  ret void"]
        assert exit_process.is_declaration
        assert exit_process.header.startswith("dso_local void @ExitProcess(i32 noundef)")

    def test_parent_is_module(self) -> None:
        module = parse_module(CLANG_OUTPUT)
        assert all(f.parent is module for f in module.funcs)

    def test_globals_and_attributes_skipped(self) -> None:
        module = parse_module(CLANG_OUTPUT)
        assert "g_counter" not in [f.name for f in module.funcs]
        assert not any("attributes" in t for t in module.type_defs)

    def test_empty_input(self) -> None:
        module = parse_module("")
        assert module == IRModule()

    def test_unterminated_body(self) -> None:
        with pytest.raises(ModuleParseError, match="compiler output is not valid LLVM IR"):
            parse_module("define void @f() {\n  ret void\n")

    def test_define_without_body(self) -> None:
        with pytest.raises(ModuleParseError):
            parse_module("define void @f()\n")

    def test_duplicate_function(self) -> None:
        with pytest.raises(ModuleParseError):
            parse_module("declare void @f()\ndeclare void @f()\n")

    def test_verifier_failure(self) -> None:
        text = (
            "define i32 @f() {\n"
            "  %a = add i32 %b, 1\n"
            "  %b = add i32 1, 1\n"
            "  ret i32 %a\n"
            "}\n"
        )
        with pytest.raises(ModuleParseError, match="not valid LLVM IR"):
            parse_module(text)

    def test_same_types_parsed_twice_keep_names(self) -> None:
        text = "%struct.S = type { i32 }\ndeclare void @f(ptr byval(%struct.S))\n"
        parse_module(text)
        again = parse_module(text)
        assert again.funcs[0].header == "void @f(ptr byval(%struct.S))"


class TestDeclarationHeader:
    def test_drops_argument_names_and_attribute_groups(self) -> None:
        header = "dso_local i32 @f(i32 noundef %0, ptr noundef %p) #0"
        assert declaration_header(header) == "dso_local i32 @f(i32 noundef, ptr noundef)"

    def test_named_struct_argument_type_kept(self) -> None:
        header = "void @f(%struct.S* %0, %struct.S %1)"
        assert declaration_header(header) == "void @f(%struct.S*, %struct.S)"

    def test_lone_struct_type_kept(self) -> None:
        assert declaration_header("void @f(%struct.S*)") == "void @f(%struct.S*)"

    def test_byval_argument(self) -> None:
        header = "void @f(ptr noundef byval(%struct.S) align 4 %0)"
        assert declaration_header(header) == "void @f(ptr noundef byval(%struct.S) align 4)"

    def test_variadic(self) -> None:
        header = "i32 @printf(ptr noundef %0, ...) #1"
        assert declaration_header(header) == "i32 @printf(ptr noundef, ...)"

    def test_definition_only_linkage_dropped(self) -> None:
        assert declaration_header("internal void @f() #0") == "void @f()"
        assert declaration_header("linkonce_odr dso_local void @g()") == "dso_local void @g()"

    def test_comdat_section_and_metadata_dropped(self) -> None:
        header = 'void @f() unnamed_addr #0 section ".text$x" comdat($f) align 16 !dbg !12'
        assert declaration_header(header) == "void @f() unnamed_addr align 16"

    def test_personality_dropped(self) -> None:
        header = "void @f() #0 personality ptr @__gxx_personality_v0"
        assert declaration_header(header) == "void @f()"

    def test_quoted_name_preserved(self) -> None:
        header = 'void @"\\01_WinMain@16"(i32 %0)'
        assert declaration_header(header) == 'void @"\\01_WinMain@16"(i32)'

    def test_function_pointer_argument(self) -> None:
        header = "void @f(void (i32)* %cb, i32 %n)"
        assert declaration_header(header) == "void @f(void (i32)*, i32)"


class TestDetach:
    def test_detach_definition(self) -> None:
        module = parse_module(CLANG_OUTPUT)
        decl = module.funcs[0].detach()
        assert decl.is_declaration
        assert decl.parent is None
        assert decl.header == (
            "dso_local x86_stdcallcc i32 @WinMain(ptr noundef, ptr noundef, ptr noundef, "
            "i32 noundef)"
        )

    def test_detach_declaration_drops_attribute_group(self) -> None:
        module = parse_module(CLANG_OUTPUT)
        assert module.funcs[2].detach().header == "dso_local void @ExitProcess(i32 noundef)"

    def test_metadata_not_copied(self) -> None:
        f = IRFunction(name="f", header="void @f()", metadata={"addr": ["0x1"]})
        assert f.detach().metadata == {}


class TestToText:
    def test_declarations_with_addr_metadata(self) -> None:
        module = IRModule(
            type_defs=["%struct.A = type { i32 }"],
            funcs=[
                IRFunction(name="f", header="void @f(i32)", metadata={"addr": ["0x401000"]}),
                IRFunction(name="g", header="i32 @g()", metadata={"addr": ["0x402000"]}),
            ],
            triple="i386-pc-linux-gnu",
        )
        assert module.to_text() == (
            'target triple = "i386-pc-linux-gnu"\n'
            "\n"
            "%struct.A = type { i32 }\n"
            "\n"
            "declare !addr !0 void @f(i32)\n"
            "declare !addr !1 i32 @g()\n"
            "\n"
            '!0 = !{!"0x401000"}\n'
            '!1 = !{!"0x402000"}\n'
        )

    def test_declaration_without_metadata(self) -> None:
        module = IRModule(funcs=[IRFunction(name="f", header="void @f()")])
        assert module.to_text() == "declare void @f()\n"

    def test_definition_keeps_body(self) -> None:
        f = IRFunction(name="f", header="void @f()", blocks=["  ret void"])
        assert IRModule(funcs=[f]).to_text() == "define void @f() {\n  ret void\n}\n"

    def test_metadata_string_escaped(self) -> None:
        f = IRFunction(name="f", header="void @f()", metadata={"note": ['a"b\\c']})
        assert '!0 = !{!"a\\22b\\5Cc"}' in IRModule(funcs=[f]).to_text()

    def test_output_verifies_and_reparses(self) -> None:
        module = parse_module(CLANG_OUTPUT)
        decls = [f.detach() for f in module.funcs]
        for i, f in enumerate(decls):
            f.metadata["addr"] = [f"0x{0x401000 + i:X}"]
        out = IRModule(type_defs=module.type_defs, funcs=decls, triple=module.triple)
        text = out.to_text()
        verify_text(text)
        again = parse_module(text)
        assert [f.name for f in again.funcs] == [f.name for f in module.funcs]
        assert again.type_defs == module.type_defs
        assert all(f.is_declaration for f in again.funcs)

    def test_invalid_output_rejected(self) -> None:
        bad = IRModule(funcs=[IRFunction(name="f", header="void @f(%struct.Missing)")])
        with pytest.raises(ModuleParseError, match="generated module is not valid LLVM IR"):
            verify_text(bad.to_text())
