"""
Эмиттер: IR -> тексты модулей (привязки операций и модели типов)
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Set

from ...errors import WrongOptionType
from ..types.ir import BodyKind, Operation, OperationIR, SchemaKind
from ..types.type_ref import ANY
from ..utils import clean_parameter_name, pascal_case
from .models import Class, CodeBlock, CodeFile, Function, Parameter
from .renderer import TypeRenderer, TypesModuleRenderer
from .templates import templates

logger = logging.getLogger(__name__)


class Flavor(str, Enum):
    PLUGIN = "plugin"
    FRONTEND = "frontend"
    TYPES_ONLY = "types-only"


class ImportStyle(str, Enum):
    RELATIVE = "relative"
    ABSOLUTE = "absolute"


class ArtifactKind(str, Enum):
    BINDINGS = "bindings"
    TYPES = "types"
    COMBINED = "combined"


@dataclass(frozen=True)
class EmitOptions:
    """Параметры генерации"""

    name: Optional[str] = None
    flavor: Flavor = Flavor.PLUGIN
    full_request: bool = False
    full_response: bool = False
    import_style: ImportStyle = ImportStyle.RELATIVE
    annotated: bool = True
    props_optional: bool = True
    single_file: bool = False
    schema_file: Optional[str] = None

    def __post_init__(self):
        for attribute, enum in (("flavor", Flavor), ("import_style", ImportStyle)):
            value = getattr(self, attribute)
            try:
                object.__setattr__(self, attribute, enum(value))
            except ValueError:
                raise WrongOptionType(
                    f"Unknown {attribute} {value!r}, expected one of "
                    f"{', '.join(item.value for item in enum)}",
                    param=attribute,
                )


@dataclass
class GeneratedArtifact:
    file_name: str
    content: str
    kind: ArtifactKind
    flavor: Flavor
    annotated: bool
    import_style: ImportStyle


# Имена, занятые самим сгенерированным модулем
_PLUGIN_RESERVED = {"close", "from_options"}
_FRONTEND_RESERVED = {
    "register",
    "set_base_url",
    "set_default_fetch_params",
    "set_default_headers",
}
_ARGUMENT_RESERVED = {"self", "headers"}


class Emitter:
    """Генератор модулей из IR"""

    def __init__(self, ir: OperationIR, options: Optional[EmitOptions] = None):
        self.ir = ir
        self.options = options or EmitOptions()

    @property
    def module_name(self) -> str:
        return clean_parameter_name(self.options.name or self.ir.title or "api")

    @property
    def class_name(self) -> str:
        return pascal_case(self.module_name) + "Client"

    def emit(self) -> List[GeneratedArtifact]:
        """Детерминированная генерация артефактов"""
        options = self.options
        module = self.module_name

        if options.flavor == Flavor.TYPES_ONLY:
            artifacts = [
                self._artifact(self._types_file(f"{module}_types.py"), ArtifactKind.TYPES)
            ]
        elif options.single_file:
            artifacts = [self._artifact(self._combined_file(), ArtifactKind.COMBINED)]
        else:
            artifacts = [
                self._artifact(self._types_file(f"{module}_types.py"), ArtifactKind.TYPES),
                self._artifact(
                    self._bindings_file(f"{module}.py", qualifier="types."),
                    ArtifactKind.BINDINGS,
                ),
            ]

        logger.debug(
            f"Emitted {', '.join(artifact.file_name for artifact in artifacts)}"
        )
        return artifacts

    def _artifact(self, code_file: CodeFile, kind: ArtifactKind) -> GeneratedArtifact:
        return GeneratedArtifact(
            file_name=code_file.file_name,
            content=str(code_file),
            kind=kind,
            flavor=self.options.flavor,
            annotated=self.options.annotated,
            import_style=self.options.import_style,
        )

    def _description(self, what: str) -> List[str]:
        title = self.ir.title + (f" {self.ir.version}" if self.ir.version else "")
        return [
            f"{what} {title}",
            "",
            "Сгенерировано schema-client, не редактировать вручную.",
        ]

    def _types_file(self, file_name: str) -> CodeFile:
        code_file = CodeFile(file_name=file_name, description=self._description("Типы"))
        return TypesModuleRenderer(
            self.ir.types, props_optional=self.options.props_optional
        ).render(code_file)

    def _combined_file(self) -> CodeFile:
        types_file = self._types_file(f"{self.module_name}.py")
        bindings_file = self._bindings_file(f"{self.module_name}.py", qualifier="")
        return CodeFile(
            file_name=types_file.file_name,
            description=self._description("Клиент"),
            imports=types_file.imports
            + [""]
            + [
                line
                for line in bindings_file.imports
                if line and line != templates.typing_import
            ],
            items=types_file.items + bindings_file.items,
        )

    def _bindings_file(self, file_name: str, qualifier: str) -> CodeFile:
        options = self.options
        code_file = CodeFile(file_name=file_name, description=self._description("Клиент"))

        public = ["ApiClient", "ClientOptions", "build_client"]
        if options.flavor == Flavor.PLUGIN:
            public.append("register_plugin")
        if options.annotated:
            if options.full_response:
                public.append("FullResponse")
            if any(op.body_kind == BodyKind.MULTIPART for op in self.ir.operations):
                public.append("FormData")

        code_file.imports.append(templates.typing_import)
        code_file.imports.append("")
        code_file.imports.append(f"from schema_client import {', '.join(sorted(public))}")
        if qualifier and options.annotated:
            types_module = f"{self.module_name}_types"
            if options.import_style == ImportStyle.RELATIVE:
                code_file.imports.append(f"from . import {types_module} as types")
            else:
                code_file.imports.append(f"import {types_module} as types")

        code_file.add_code_block(
            templates.constants.format(
                schema_file=options.schema_file,
                full_request=options.full_request,
                full_response=options.full_response,
            )
        )
        code_file.add_code_block(templates.options_factory)

        renderer = TypeRenderer(qualifier=qualifier, quote_refs=False)
        if options.flavor == Flavor.PLUGIN:
            self._plugin_bindings(code_file, renderer)
        else:
            self._frontend_bindings(code_file, renderer)
        return code_file

    def _plugin_bindings(self, code_file: CodeFile, renderer: TypeRenderer) -> None:
        client_class = code_file.add_class(
            self.class_name, description=[f"Клиент {self.ir.title}"]
        )
        client_class.add_code_block(templates.plugin_init)
        client_class.add_code_block(
            templates.plugin_from_options.format(class_name=self.class_name)
        )
        client_class.add_code_block(templates.plugin_close)

        for operation in self.ir.operations:
            client_class.add_function(
                self._operation_function(
                    operation, renderer, target="self._client", reserved=_PLUGIN_RESERVED
                )
            )

        code_file.add_code_block(templates.plugin_register.format(name=self.module_name))

    def _frontend_bindings(self, code_file: CodeFile, renderer: TypeRenderer) -> None:
        code_file.add_code_block(templates.frontend_state)
        code_file.add_code_block(templates.frontend_mutators)

        for operation in self.ir.operations:
            code_file.add_function(
                self._operation_function(
                    operation,
                    renderer,
                    target="_state.get_client()",
                    reserved=_FRONTEND_RESERVED,
                )
            )

    def _operation_function(
        self,
        operation: Operation,
        renderer: TypeRenderer,
        target: str,
        reserved: Set[str],
    ) -> Function:
        name = operation.python_name
        if name in reserved:
            name = f"{name}_"

        parameters = [Parameter(name="self")] if target.startswith("self") else []

        if self.ir.kind == SchemaKind.GRAPHQL:
            return self._graphql_function(name, parameters, target)

        if self.options.full_request:
            arguments = self._full_request_arguments(operation, parameters)
            call = f'await {target}.invoke(\n\t{operation.id!r},\n\t{arguments},\n)'
        else:
            arguments = self._flat_arguments(operation, parameters, renderer)
            call = (
                f"await {target}.invoke(\n\t{operation.id!r},\n\t{arguments},\n"
                f"\theaders=headers,\n)"
            )

        response = None
        if self.options.annotated:
            if self.options.full_response:
                response = "FullResponse"
            else:
                response_name = self.ir.operation_types.get(operation.id, (None, None))[1]
                response = (
                    renderer.render(ANY)
                    if response_name is None
                    else renderer.qualifier + response_name
                )

        return Function(
            name=name,
            parameters=parameters,
            response=response,
            async_def=True,
            description=self._operation_description(operation),
            code=CodeBlock(code=f"return {call}"),
        )

    def _flat_arguments(
        self,
        operation: Operation,
        parameters: List[Parameter],
        renderer: TypeRenderer,
    ) -> str:
        annotated = self.options.annotated
        used = set(_ARGUMENT_RESERVED)
        required, optional, mapping = [], [], []

        def add(original: str, type_annotation: str, is_required: bool) -> None:
            python_name = clean_parameter_name(original)
            while python_name in used:
                python_name = f"{python_name}_"
            used.add(python_name)

            if not is_required:
                type_annotation = f"Optional[{type_annotation}]"
            parameter = Parameter(
                name=python_name,
                var_type=type_annotation if annotated else None,
                default=None if is_required else "None",
            )
            (required if is_required else optional).append(parameter)
            mapping.append(f"{original!r}: {python_name}")

        for param in operation.parameters:
            add(param.name, renderer.render(param.type), param.required)

        if operation.request_body is not None:
            body_annotation = (
                "FormData"
                if operation.body_kind == BodyKind.MULTIPART
                else renderer.render(operation.request_body)
            )
            add("body", body_annotation, operation.body_required)

        parameters.append(Parameter(name="*"))
        parameters.extend(required + optional)
        parameters.append(
            Parameter(
                name="headers",
                var_type="Optional[Dict[str, str]]" if annotated else None,
                default="None",
            )
        )
        return "{" + ", ".join(mapping) + "}"

    def _full_request_arguments(
        self, operation: Operation, parameters: List[Parameter]
    ) -> str:
        annotated = self.options.annotated
        keys = ["path", "query", "headers", "body"]
        parameters.append(Parameter(name="*"))
        for key in keys:
            annotation = "Optional[Dict[str, Any]]"
            if key == "headers":
                annotation = "Optional[Dict[str, str]]"
            elif key == "body":
                annotation = "Any"
            parameters.append(
                Parameter(
                    name=key,
                    var_type=annotation if annotated else None,
                    default="None",
                )
            )
        return "{" + ", ".join(f"{key!r}: {key}" for key in keys) + "}"

    def _graphql_function(
        self, name: str, parameters: List[Parameter], target: str
    ) -> Function:
        annotated = self.options.annotated
        parameters.extend(
            [
                Parameter(name="query", var_type="str" if annotated else None),
                Parameter(
                    name="variables",
                    var_type="Optional[Dict[str, Any]]" if annotated else None,
                    default="None",
                ),
                Parameter(
                    name="headers",
                    var_type="Optional[Dict[str, str]]" if annotated else None,
                    default="None",
                ),
            ]
        )
        return Function(
            name=name,
            parameters=parameters,
            response="Any" if annotated else None,
            async_def=True,
            description=["Запрос GraphQL, возвращает поле data ответа"],
            code=CodeBlock(
                code=f"return await {target}.graphql(query, variables, headers=headers)"
            ),
        )

    @staticmethod
    def _operation_description(operation: Operation) -> List[str]:
        route = f"{operation.method.upper()} {operation.path}"
        lines = [operation.summary.strip()] if operation.summary else [route]
        if operation.description and operation.description.strip() != operation.summary:
            lines += [""] + operation.description.strip().splitlines()
        if operation.summary:
            lines += ["", route]
        if operation.deprecated:
            lines += ["", "Deprecated."]
        return [line.rstrip() for line in lines]
