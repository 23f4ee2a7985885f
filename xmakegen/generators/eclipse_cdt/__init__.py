import posixpath
from pathlib import Path
from typing import List
from xml.dom.minidom import Document, Element

from xmakegen.details.scopes import Project
from xmakegen.details.source_tree import NodeToolOptions
from xmakegen.details.toolchain import Tool
from xmakegen.details.workspace import BuildContext
from xmakegen.generators.eclipse_cdt.utils import (
    append_element,
    append_text_element,
    make_id,
    write_xml_to_path,
)
from xmakegen.generators.utils import posix_relpath

ARTEFACT_TYPES = {
    "executable": "org.eclipse.cdt.build.core.buildArtefactType.exe",
    "staticLib": "org.eclipse.cdt.build.core.buildArtefactType.staticLib",
    "sharedLib": "org.eclipse.cdt.build.core.buildArtefactType.sharedLib",
}

ERROR_PARSERS = [
    "org.eclipse.cdt.core.GASErrorParser",
    "org.eclipse.cdt.core.GmakeErrorParser",
    "org.eclipse.cdt.core.GLDErrorParser",
    "org.eclipse.cdt.core.CWDLocator",
    "org.eclipse.cdt.core.GCCErrorParser",
]


def tool_super_class(tool: Tool) -> str:
    language = "cpp" if tool.languages == ["c++"] else "c"
    if tool.type == "compiler":
        return f"cdt.managedbuild.tool.gnu.{language}.compiler"
    elif tool.type == "linker":
        return f"cdt.managedbuild.tool.gnu.{language}.linker"
    elif tool.type == "assembler":
        return "cdt.managedbuild.tool.gnu.assembler"
    else:
        return "cdt.managedbuild.tool.gnu.archiver"


class EclipseCdtExporter:
    def __init__(self, project: Project, contexts: List[BuildContext]):
        self.project = project
        self.contexts = contexts
        self.output_root = Path(project.folder_absolute_path)

    def __call__(self) -> List[Path]:
        project_path = self.output_root.joinpath(".project")
        cproject_path = self.output_root.joinpath(".cproject")
        write_xml_to_path(self._project_document(), project_path)
        write_xml_to_path(self._cproject_document(), cproject_path)
        return [project_path, cproject_path]

    def _project_document(self) -> Document:
        xdoc = Document()
        xroot = append_element(xdoc, "projectDescription")
        append_text_element(xroot, "name", self.project.name)
        append_text_element(xroot, "comment", "")
        append_element(xroot, "projects")
        xbuild_spec = append_element(xroot, "buildSpec")
        for name, triggers in [
            ("org.eclipse.cdt.managedbuilder.core.genmakebuilder", "clean,full,incremental,"),
            ("org.eclipse.cdt.managedbuilder.core.ScannerConfigBuilder", "full,incremental,"),
        ]:
            xcommand = append_element(xbuild_spec, "buildCommand")
            append_text_element(xcommand, "name", name)
            append_text_element(xcommand, "triggers", triggers)
            append_element(xcommand, "arguments")
        xnatures = append_element(xroot, "natures")
        natures = ["org.eclipse.cdt.core.cnature"]
        if any(c.configuration.resolved_language == "c++" for c in self.contexts):
            natures.append("org.eclipse.cdt.core.ccnature")
        natures += [
            "org.eclipse.cdt.managedbuilder.core.managedBuildNature",
            "org.eclipse.cdt.managedbuilder.core.ScannerConfigNature",
        ]
        for nature in natures:
            append_text_element(xnatures, "nature", nature)
        return xdoc

    def _cproject_document(self) -> Document:
        xdoc = Document()
        xdoc.appendChild(xdoc.createProcessingInstruction("fileVersion", "4.0.0"))
        xroot = append_element(
            xdoc,
            "cproject",
            {"storage_type_id": "org.eclipse.cdt.core.XmlProjectDescriptionStorage"},
        )
        xsettings = append_element(
            xroot, "storageModule", {"moduleId": "org.eclipse.cdt.core.settings"}
        )
        for context in self.contexts:
            self._append_configuration(xsettings, context)
        append_element(
            xroot,
            "storageModule",
            {"moduleId": "cdtBuildSystem", "version": "4.0.0"},
        )
        return xdoc

    def _append_configuration(self, xparent: Element, context: BuildContext):
        configuration = context.configuration
        artefact = configuration.artefact
        assert artefact and configuration.toolchain
        config_id = make_id("xmakegen.config", f"{self.project.name}/{configuration.name}")
        xconfig = append_element(xparent, "cconfiguration", {"id": config_id})
        xdata = append_element(
            xconfig,
            "storageModule",
            {
                "buildSystemId": "org.eclipse.cdt.managedbuilder.core.configurationDataProvider",
                "id": config_id,
                "moduleId": "org.eclipse.cdt.core.settings",
                "name": configuration.name,
            },
        )
        append_element(xdata, "externalSettings")
        xextensions = append_element(xdata, "extensions")
        for parser in ERROR_PARSERS:
            append_element(
                xextensions,
                "extension",
                {"id": parser, "point": "org.eclipse.cdt.core.ErrorParser"},
            )

        xbuild_system = append_element(
            xconfig, "storageModule", {"moduleId": "cdtBuildSystem", "version": "4.0.0"}
        )
        xconfiguration = append_element(
            xbuild_system,
            "configuration",
            {
                "artifactName": f"{artefact.output_prefix}{artefact.name}{artefact.output_suffix}",
                "artifactExtension": artefact.extension or "",
                "buildArtefactType": ARTEFACT_TYPES[artefact.type or "executable"],
                "buildProperties": "",
                "id": config_id,
                "name": configuration.name,
                "parent": "cdt.managedbuild.config.gnu.exe",
            },
        )

        tree = context.tree
        for folder in configuration.resolved_folders.values():
            node = folder.node
            assert node is not None
            xinfo = append_element(
                xconfiguration,
                "folderInfo",
                {
                    "id": make_id(f"{config_id}.folder", node.relative_path),
                    "name": "/",
                    "resourcePath": node.relative_path,
                },
            )
            xtoolchain = append_element(
                xinfo,
                "toolChain",
                {
                    "id": make_id(f"{config_id}.toolchain", node.relative_path),
                    "name": configuration.toolchain.name,
                },
            )
            if not node.relative_path:
                append_element(
                    xtoolchain,
                    "builder",
                    {
                        "buildPath": "${workspace_loc:/" + self.project.name + "}/"
                        + context.build_relative_path,
                        "id": make_id(f"{config_id}.builder", ""),
                        "managedBuildOn": "false",
                    },
                )
            for node_options in node.options.tools.values():
                self._append_tool(xtoolchain, config_id, node.relative_path, node_options, context)

        for file in configuration.resolved_files.values():
            node = file.node
            assert node is not None
            xinfo = append_element(
                xconfiguration,
                "fileInfo",
                {
                    "id": make_id(f"{config_id}.file", node.relative_path),
                    "name": node.name,
                    "rcbsApplicability": "disable",
                    "resourcePath": node.relative_path,
                },
            )
            self._append_tool(xinfo, config_id, node.relative_path, node.tool_options, context)

        xentries = append_element(xconfiguration, "sourceEntries")
        for source_folder in configuration.source_folders:
            append_element(
                xentries,
                "entry",
                {
                    "flags": "VALUE_WORKSPACE_PATH|RESOLVED",
                    "kind": "sourcePath",
                    "name": posix_relpath(source_folder, tree.root_absolute_path),
                },
            )

    def _append_tool(
        self,
        xparent: Element,
        config_id: str,
        resource: str,
        node_options: NodeToolOptions,
        context: BuildContext,
    ):
        tool = node_options.tool
        tool_id = make_id(f"{config_id}.tool.{tool.name}", resource)
        xtool = append_element(
            xparent,
            "tool",
            {
                "id": tool_id,
                "name": tool.full_description,
                "superClass": tool_super_class(tool),
            },
        )
        flags = " ".join(node_options.flags)
        if flags:
            append_element(
                xtool,
                "option",
                {
                    "id": f"{tool_id}.other",
                    "name": "Other flags",
                    "value": flags,
                    "valueType": "string",
                },
            )
        if tool.uses_symbols:
            self._append_list_option(
                xtool, f"{tool_id}.defs", "Defined symbols (-D)", "definedSymbols",
                node_options.defined_symbols,
            )
            self._append_list_option(
                xtool, f"{tool_id}.undefs", "Undefined symbols (-U)", "undefDefinedSymbols",
                node_options.undefined_symbols,
            )
        if tool.uses_includes:
            self._append_list_option(
                xtool, f"{tool_id}.include.paths", "Include paths (-I)", "includePath",
                [self._workspace_path(p, context) for p in node_options.include_folders],
            )
            self._append_list_option(
                xtool, f"{tool_id}.include.system", "Include system paths (-isystem)", "includePath",
                [self._workspace_path(p, context) for p in node_options.include_system_folders],
            )
            self._append_list_option(
                xtool, f"{tool_id}.include.files", "Include files (-include)", "includeFiles",
                [self._workspace_path(p, context) for p in node_options.include_files],
            )

    def _append_list_option(self, xtool: Element, option_id: str, name: str, value_type: str, values: List[str]):
        if not values:
            return
        xoption = append_element(
            xtool, "option", {"id": option_id, "name": name, "valueType": value_type}
        )
        for value in values:
            append_element(xoption, "listOptionValue", {"builtIn": "false", "value": value})

    # Build folder relative paths become workspace locations.
    def _workspace_path(self, path: str, context: BuildContext) -> str:
        project_relative = posixpath.normpath(
            posixpath.join(context.build_relative_path, path)
        )
        return '"${workspace_loc:/${ProjName}/' + project_relative + '}"'
