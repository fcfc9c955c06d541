""" Render the ``.proto`` source for a protocol buffer message. The message
    class already carries its full descriptor, so rather than inferring a
    schema from field values, the file the message was compiled from is
    reconstructed from its :class:`FileDescriptorProto`.

    Services, extensions, reserved ranges, and custom options are not
    rendered; the broker only needs the message definitions.
"""

from google.protobuf import descriptor as protobuf_descriptor
from google.protobuf import descriptor_pb2

from .. import errors


FieldDescriptorProto = descriptor_pb2.FieldDescriptorProto

indent = '  '


def generate(sample, name=None):

    if isinstance(sample, (bytes, bytearray, memoryview)):
        raise errors.GenerationError('raw protobuf bytes carry no descriptor; supply the message instance')

    descriptor = getattr(sample, 'DESCRIPTOR', None)

    if not isinstance(descriptor, protobuf_descriptor.Descriptor):
        raise errors.GenerationError('not a protocol buffer message: ' + type(sample).__name__)

    file_proto = descriptor_pb2.FileDescriptorProto()
    descriptor.file.CopyToProto(file_proto)

    return render_file(file_proto)


def render_file(file_proto):
    """ Return the ``.proto`` source text for the supplied
        :class:`descriptor_pb2.FileDescriptorProto`.
    """

    syntax = file_proto.syntax or 'proto2'

    if syntax not in ('proto2', 'proto3'):
        raise errors.GenerationError('unsupported protobuf syntax: ' + repr(syntax))

    renderer = _Renderer(file_proto.package, syntax)
    lines = list()

    lines.append('syntax = "%s";' % (syntax))

    if file_proto.package:
        lines.append('')
        lines.append('package %s;' % (file_proto.package))

    if file_proto.dependency:
        lines.append('')
        for dependency in file_proto.dependency:
            lines.append('import "%s";' % (dependency))

    for enum_proto in file_proto.enum_type:
        lines.append('')
        lines.extend(renderer.enum(enum_proto, 0))

    for message_proto in file_proto.message_type:
        lines.append('')
        lines.extend(renderer.message(message_proto, 0))

    return '\n'.join(lines) + '\n'


class _Renderer:

    def __init__(self, package, syntax):

        self.package = package
        self.syntax = syntax

        if package:
            self.prefix = '.' + package + '.'
        else:
            self.prefix = '.'


    def enum(self, enum_proto, depth):

        pad = indent * depth
        lines = ['%senum %s {' % (pad, enum_proto.name)]

        for value in enum_proto.value:
            lines.append('%s%s%s = %d;' % (pad, indent, value.name, value.number))

        lines.append(pad + '}')
        return lines


    def message(self, message_proto, depth):

        pad = indent * depth
        inner = pad + indent
        lines = ['%smessage %s {' % (pad, message_proto.name)]

        map_entries = dict()
        for nested in message_proto.nested_type:
            if nested.options.map_entry:
                map_entries[nested.name] = nested

        for enum_proto in message_proto.enum_type:
            lines.extend(self.enum(enum_proto, depth + 1))

        for nested in message_proto.nested_type:
            if nested.name in map_entries:
                continue
            lines.extend(self.message(nested, depth + 1))

        emitted_oneofs = set()

        for field in message_proto.field:
            if field.HasField('oneof_index') and not field.proto3_optional:
                index = field.oneof_index
                if index in emitted_oneofs:
                    continue
                emitted_oneofs.add(index)

                oneof_name = message_proto.oneof_decl[index].name
                lines.append('%soneof %s {' % (inner, oneof_name))
                for member in message_proto.field:
                    if member.HasField('oneof_index') and member.oneof_index == index and not member.proto3_optional:
                        lines.append(inner + indent + self.field(member, map_entries, in_oneof=True))
                lines.append(inner + '}')
            else:
                lines.append(inner + self.field(field, map_entries))

        lines.append(pad + '}')
        return lines


    def field(self, field, map_entries, in_oneof=False):

        entry = self._map_entry(field, map_entries)

        if entry is not None:
            key = self.type_of(entry.field[0])
            value = self.type_of(entry.field[1])
            declaration = 'map<%s, %s> %s = %d' % (key, value, field.name, field.number)
        else:
            label = '' if in_oneof else self.label(field)
            declaration = '%s%s %s = %d' % (label, self.type_of(field), field.name, field.number)

        if field.HasField('default_value'):
            declaration += ' [default = %s]' % (self.default(field))

        return declaration + ';'


    def label(self, field):

        if field.label == FieldDescriptorProto.LABEL_REPEATED:
            return 'repeated '

        if self.syntax == 'proto3':
            if field.proto3_optional:
                return 'optional '
            return ''

        if field.label == FieldDescriptorProto.LABEL_REQUIRED:
            return 'required '
        return 'optional '


    def type_of(self, field):

        if field.type in (FieldDescriptorProto.TYPE_MESSAGE, FieldDescriptorProto.TYPE_ENUM):
            return self.relative(field.type_name)

        if field.type == FieldDescriptorProto.TYPE_GROUP:
            raise errors.GenerationError('proto2 groups are not supported: ' + field.name)

        # TYPE_DOUBLE -> double, TYPE_SFIXED32 -> sfixed32, etc.
        return FieldDescriptorProto.Type.Name(field.type)[5:].lower()


    def relative(self, type_name):
        """ Strip the local package from a fully qualified type name; names
            from other packages stay fully qualified.
        """

        if type_name.startswith(self.prefix):
            return type_name[len(self.prefix):]
        return type_name


    def default(self, field):

        value = field.default_value

        if field.type == FieldDescriptorProto.TYPE_STRING:
            value = value.replace('\\', '\\\\').replace('"', '\\"')
            return '"%s"' % (value)

        if field.type == FieldDescriptorProto.TYPE_BYTES:
            # Already C-escaped in the descriptor.
            return '"%s"' % (value)

        return value


    def _map_entry(self, field, map_entries):

        if field.type != FieldDescriptorProto.TYPE_MESSAGE:
            return None
        if field.label != FieldDescriptorProto.LABEL_REPEATED:
            return None

        short_name = field.type_name.rsplit('.', 1)[-1]
        return map_entries.get(short_name)


# end of class _Renderer


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
