"""
Модели исходного кода, из которых собираются сгенерированные модули
"""

from typing import List, Optional, Union

from pydantic import BaseModel, field_validator

INDENT = "    "


def indent(text: str, prefix: str = INDENT) -> str:
    """Отступ для каждой непустой строки"""
    return "\n".join(prefix + line if line else line for line in text.split("\n"))


def docstring(lines: List[str]) -> str:
    """Тройные кавычки вокруг строк описания"""
    lines = [line.replace("\\", "\\\\").replace('"', '\\"') for line in lines]
    if len(lines) == 1:
        return f'"""{lines[0]}"""'
    return '"""\n' + "\n".join(lines) + '\n"""'


class Variable(BaseModel):
    """Выражение типа: List[int], Union["A", None], ..."""

    value: List[Union["Variable", str]] = []
    wrap_name: Optional[str] = None

    @field_validator("value", mode="before")
    def value_check(cls, value):
        if not isinstance(value, list):
            return [value]
        return value

    def __str__(self):
        joined = ", ".join(str(item) for item in self.value)
        if self.wrap_name is None:
            return joined
        return f"{self.wrap_name}[{joined}]"


Variable.model_rebuild()


class Parameter(BaseModel):
    name: str

    var_type: Optional[Union[Variable, str]] = None
    default: Optional[str] = None

    order: int = 0

    def __str__(self):
        return (
            self.name
            + (f": {self.var_type}" if self.var_type is not None else "")
            + (f" = {self.default}" if self.default is not None else "")
        )


class CodeBlock(BaseModel):
    order: int = 0
    code: str = "pass"

    def __str__(self):
        return self.code.replace("\t", INDENT)


class Function(BaseModel):
    name: str
    parameters: List[Parameter] = []
    response: Optional[str] = None

    async_def: bool = False
    decorators: List[str] = []
    description: List[str] = []

    code: CodeBlock = CodeBlock()
    order: int = 0

    def __str__(self) -> str:
        signature = f"{'async ' if self.async_def else ''}def {self.name}("
        if len(self.parameters) > 1 or (
            self.parameters and len(str(self.parameters[0])) > 60
        ):
            signature += (
                "\n" + "".join(f"{INDENT}{param},\n" for param in self.parameters)
            )
        else:
            signature += ", ".join(str(param) for param in self.parameters)
        signature += ")"
        if self.response is not None:
            signature += f" -> {self.response}"
        signature += ":"

        body = [docstring(self.description)] if self.description else []
        body.append(str(self.code))

        return "\n".join(
            self.decorators + [signature, indent("\n".join(body))]
        )

    def set_code_block(self, code_block: Union[CodeBlock, str]) -> "Function":
        if isinstance(code_block, str):
            code_block = CodeBlock(code=code_block)

        self.code = code_block
        return self


class Class(BaseModel):
    name: str
    inherits: List[str] = []
    description: List[str] = []

    parameters: List[Parameter] = []
    code_blocks: List[CodeBlock] = []
    functions: List[Function] = []

    order: int = 0

    def __str__(self) -> str:
        sections = []
        if self.description:
            sections.append(docstring(self.description))
        if self.parameters:
            sections.append("\n".join(map(str, self.parameters)))
        sections.extend(str(block) for block in self.code_blocks)
        sections.extend(str(function) for function in self.functions)

        header = f"class {self.name}"
        if self.inherits:
            header += f"({', '.join(self.inherits)})"

        return header + ":\n" + indent("\n\n".join(sections) if sections else "pass")

    def add_function(self, function: Union[Function, str], **kwargs) -> Function:
        if isinstance(function, str):
            function = Function(name=function, **kwargs)

        self.functions.append(function)
        return function

    def add_code_block(self, code_block: Union[CodeBlock, str], **kwargs) -> "Class":
        if isinstance(code_block, str):
            code_block = CodeBlock(code=code_block, **kwargs)

        self.code_blocks.append(code_block)
        return self


class CodeFile(BaseModel):
    file_name: str
    description: List[str] = []

    imports: List[str] = []
    items: List[Union[Class, Function, CodeBlock]] = []

    def __str__(self):
        parts = []
        if self.description:
            parts.append(docstring(self.description))
        if self.imports:
            parts.append("\n".join(self.imports))

        # Стабильная сортировка: при равном order сохраняется порядок добавления
        items = sorted(self.items, key=lambda item: -item.order)
        if items:
            parts.append("\n\n\n".join(str(item) for item in items))

        return "\n\n".join(parts).replace("\t", INDENT) + "\n"

    def add_function(self, function: Union[Function, str], **kwargs) -> Function:
        if isinstance(function, str):
            function = Function(name=function, **kwargs)

        self.items.append(function)
        return function

    def add_class(self, cls: Union[Class, str], **kwargs) -> Class:
        if isinstance(cls, str):
            cls = Class(name=cls, **kwargs)

        self.items.append(cls)
        return cls

    def add_code_block(self, code_block: Union[CodeBlock, str], **kwargs) -> "CodeFile":
        if isinstance(code_block, str):
            code_block = CodeBlock(code=code_block, **kwargs)

        self.items.append(code_block)
        return self
